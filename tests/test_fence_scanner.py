"""Tests for the fenced-block scanner: location resolution and extraction."""

import pytest

from litgraph.adapters.fence_scanner import (
    FenceExtractor,
    FenceLocationResolver,
    scan_fences,
    split_lines,
)
from litgraph.core.errors import LocationNotFoundError
from litgraph.core.model import Position, Span

DOC = """# Hello

``` {.rust #hello-rust}
fn main() {
    <<print-hello>>
}
```

Some prose.

``` {.rust #print-hello}
println!("Hello");
```

``` {.rust #print-hello}
println!("again");
```
"""


def test_split_lines_drops_carriage_returns():
    assert split_lines("a\r\nb\nc") == ["a", "b", "c"]


def test_scan_fences_finds_all_blocks():
    fences = list(scan_fences(split_lines(DOC)))

    assert [f.identifier for f in fences] == ["hello-rust", "print-hello", "print-hello"]
    assert fences[0].language == "rust"
    assert fences[0].open_line == 2
    assert fences[0].close_line == 6


def test_scan_fences_longer_outer_fence():
    """A ```` fence is not closed by ```."""
    text = "```` {.md #outer}\n```\ninner\n```\n````\n"
    fences = list(scan_fences(split_lines(text)))

    assert len(fences) == 1
    assert fences[0].identifier == "outer"
    assert fences[0].close_line == 4


def test_scan_fences_plain_blocks_have_no_identifier():
    fences = list(scan_fences(split_lines("```python\nx = 1\n```\n")))

    assert len(fences) == 1
    assert fences[0].identifier is None
    assert fences[0].language == ""


def test_first_identifier_attribute_wins():
    fences = list(scan_fences(split_lines("``` {.c #one #two}\nx\n```\n")))
    assert fences[0].identifier == "one"


def test_locate_block_span():
    loc = FenceLocationResolver().locate(DOC, "doc.md", "hello-rust", 0)

    assert loc.document_id == "doc.md"
    assert loc.span == Span(Position(2, 0), Position(6, 3))


def test_locate_identifier_span():
    loc = FenceLocationResolver().locate(DOC, "doc.md", "hello-rust", 0)

    line = split_lines(DOC)[2]
    start = loc.identifier_span.start.character
    end = loc.identifier_span.end.character
    assert line[start:end] == "hello-rust"


def test_locate_reference_spans():
    loc = FenceLocationResolver().locate(DOC, "doc.md", "hello-rust", 0)

    assert len(loc.reference_spans) == 1
    name, span = loc.reference_spans[0]
    assert name == "print-hello"
    assert span == Span(Position(4, 4), Position(4, 19))


def test_locate_occurrence_index():
    """The Nth occurrence maps to the Nth matching fence."""
    resolver = FenceLocationResolver()
    first = resolver.locate(DOC, "doc.md", "print-hello", 0)
    second = resolver.locate(DOC, "doc.md", "print-hello", 1)

    assert first.span.start.line == 10
    assert second.span.start.line == 14


def test_locate_missing_occurrence():
    with pytest.raises(LocationNotFoundError) as exc_info:
        FenceLocationResolver().locate(DOC, "doc.md", "print-hello", 2)

    assert exc_info.value.identifier == "print-hello"
    assert exc_info.value.occurrence_index == 2


def test_locate_unknown_identifier():
    with pytest.raises(LocationNotFoundError):
        FenceLocationResolver().locate(DOC, "doc.md", "nope", 0)


def test_locate_without_closing_fence():
    text = "``` {.py #open}\nprint(1)\n"
    with pytest.raises(LocationNotFoundError) as exc_info:
        FenceLocationResolver().locate(text, "doc.md", "open", 0)

    assert "no closing fence" in str(exc_info.value)


def test_locate_is_deterministic():
    resolver = FenceLocationResolver()
    assert resolver.locate(DOC, "d", "print-hello", 1) == resolver.locate(DOC, "d", "print-hello", 1)


def test_locate_tilde_fence():
    text = "~~~ {.sh #run}\necho hi\n~~~\n"
    loc = FenceLocationResolver().locate(text, "d", "run", 0)
    assert loc.span == Span(Position(0, 0), Position(2, 3))


def test_extractor_blocks():
    blocks = FenceExtractor().extract(DOC)

    assert [(b.identifier, b.occurrence_index) for b in blocks] == [
        ("hello-rust", 0),
        ("print-hello", 0),
        ("print-hello", 1),
    ]
    assert blocks[0].content == "fn main() {\n    <<print-hello>>\n}"
    assert blocks[0].references == ("print-hello",)
    assert blocks[1].content == 'println!("Hello");'


def test_extractor_skips_unnamed_blocks():
    blocks = FenceExtractor().extract("```python\nx = 1\n```\n")
    assert blocks == []


def test_extractor_unclosed_fence_runs_to_end():
    blocks = FenceExtractor().extract("``` {.py #tail}\na\nb")
    assert len(blocks) == 1
    assert blocks[0].content == "a\nb"


def test_extractor_and_resolver_agree():
    """Every extracted block can be located."""
    resolver = FenceLocationResolver()
    for raw in FenceExtractor().extract(DOC):
        loc = resolver.locate(DOC, "doc.md", raw.identifier, raw.occurrence_index)
        assert loc.identifier_span is not None


def test_inline_code_line_is_not_a_fence():
    """A backtick run with backticks in its info string is inline code."""
    text = (
        "```x``` is inline code.\n\n"
        "``` {.text #a}\n1\n```\n"
        "``` {.text #b}\n2\n```\n"
    )

    fences = list(scan_fences(split_lines(text)))
    assert [f.identifier for f in fences] == ["a", "b"]

    blocks = FenceExtractor().extract(text)
    assert [(b.identifier, b.content) for b in blocks] == [("a", "1"), ("b", "2")]

    loc = FenceLocationResolver().locate(text, "doc.md", "a", 0)
    assert loc.span == Span(Position(2, 0), Position(4, 3))


def test_tilde_fence_may_contain_backticks_in_info():
    text = "~~~ {.sh #run} `x`\necho hi\n~~~\n"
    fences = list(scan_fences(split_lines(text)))
    assert [f.identifier for f in fences] == ["run"]
