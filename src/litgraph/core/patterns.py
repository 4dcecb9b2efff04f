"""Regular expressions for the literate syntax."""

import re

# <<hello-rust>>; no whitespace inside, so `a << b >> c` is not a reference
REFERENCE_RE = re.compile(r"<<([^>\s]+)>>")

# ``` {.rust #hello-rust .extra key="value"}  (also ~~~ fences)
FENCE_RE = re.compile(r"^(`{3,}|~{3,})(.*)$")
ATTRIBUTES_RE = re.compile(r"^\s*\{([^}]*)\}")
IDENTIFIER_RE = re.compile(r"#([^\s}]+)")
LANGUAGE_RE = re.compile(r"\.([A-Za-z0-9_-]+)(?:\s|$)")


def find_references(content: str) -> tuple[str, ...]:
    """Identifiers referenced in content, in first-mention order, without duplicates."""
    return tuple(dict.fromkeys(m.group(1) for m in REFERENCE_RE.finditer(content)))
