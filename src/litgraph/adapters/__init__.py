"""Extractors, location resolution and document storage."""
