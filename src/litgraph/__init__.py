"""litgraph - navigation and tangling for literate Markdown code blocks."""

__version__ = "0.2.0"
