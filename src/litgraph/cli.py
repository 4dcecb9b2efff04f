"""CLI for litgraph - navigate and tangle literate Markdown code blocks."""

import argparse
import json
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .config import EXTRACTOR_KINDS
from .core.errors import LiterateError
from .core.graph import graph_data
from .lint import run_lint
from .locate import block_to_dict, cycle_to_dict, format_location, location_to_dict
from .log import setup_logging
from .runtime import build_runtime


def cmd_scan(args: argparse.Namespace, rt: Any) -> int:
    """Parse every document and report counts."""
    counts = rt.last_counts
    cycles = rt.engine.find_circular_references()

    if args.json:
        print(json.dumps({**counts, "identifiers": len(rt.engine.registry), "cycles": len(cycles)}))
    elif not args.quiet:
        print(f"Documents: {counts['documents']}")
        print(f"Blocks: {counts['blocks']}")
        print(f"Identifiers: {len(rt.engine.registry)}")
        if cycles:
            print(f"Cycles: {len(cycles)}")
        if counts["failed"] > 0:
            print(f"Failed: {counts['failed']}")

    return 1 if counts["failed"] else 0


def cmd_blocks(args: argparse.Namespace, rt: Any) -> int:
    """List code blocks, optionally for one document."""
    registry = rt.engine.registry
    doc_ids = [args.document] if args.document else registry.document_ids()

    blocks = [b for doc_id in doc_ids for b in registry.document_blocks(doc_id)]

    if args.json:
        print(json.dumps([block_to_dict(b) for b in blocks], indent=2))
        return 0

    for block in blocks:
        lang = f" [{block.language}]" if block.language else ""
        refs = f" -> {', '.join(block.references)}" if block.references else ""
        print(f"{format_location(block.location)}\t#{block.identifier}{lang}{refs}")
    return 0


def cmd_def(args: argparse.Namespace, rt: Any) -> int:
    """Show where a block is first defined."""
    loc = rt.engine.find_definition(args.id)
    if loc is None:
        print(f"Block {args.id} not found", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(location_to_dict(loc), indent=2))
    else:
        print(format_location(loc))
    return 0


def cmd_refs(args: argparse.Namespace, rt: Any) -> int:
    """Show every occurrence of a block and every reference to it."""
    locations = rt.engine.find_references(args.id)

    if args.json:
        print(json.dumps([location_to_dict(loc) for loc in locations], indent=2))
    else:
        for loc in locations:
            print(format_location(loc))

    if not locations:
        if not args.quiet and not args.json:
            print(f"No references to {args.id}", file=sys.stderr)
        return 1
    return 0


def cmd_cycles(args: argparse.Namespace, rt: Any) -> int:
    """Report circular references."""
    cycles = rt.engine.find_circular_references()

    if args.json:
        print(json.dumps([cycle_to_dict(c) for c in cycles], indent=2))
    elif cycles:
        for cycle in cycles:
            print(" -> ".join([*cycle.path, cycle.start]))
    elif not args.quiet:
        print("No circular references")

    return 1 if cycles and args.strict else 0


def cmd_expand(args: argparse.Namespace, rt: Any) -> int:
    """Print the fully expanded content of a block."""
    text = rt.engine.get_expanded_content(args.id)
    if args.json:
        print(json.dumps({"id": args.id, "text": text}))
    else:
        sys.stdout.write(text)
    return 0


def cmd_graph(args: argparse.Namespace, rt: Any) -> int:
    """Export the identifier graph."""
    data = graph_data(rt.engine.registry)

    if getattr(args, "dot", False):
        print("digraph literate {")
        print("  rankdir=LR;")
        print("  node [shape=box];")
        for node in data["nodes"]:
            print(f'  "{node["id"]}";')
        for edge in data["edges"]:
            style = "" if edge["resolved"] else " [style=dashed]"
            print(f'  "{edge["source"]}" -> "{edge["target"]}"{style};')
        print("}")
    else:
        print(json.dumps(data, indent=2))

    return 0


def cmd_lint(args: argparse.Namespace, rt: Any) -> int:
    """Report undefined references and cycles."""
    findings = run_lint(rt.engine)

    if args.json:
        print(
            json.dumps(
                [
                    {
                        "severity": f.severity,
                        "message": f.message,
                        "location": location_to_dict(f.location) if f.location else None,
                    }
                    for f in findings
                ],
                indent=2,
            )
        )
    else:
        for f in findings:
            where = format_location(f.location) if f.location else "-"
            print(f"{where}\t{f.severity}\t{f.message}")
        if not findings and not args.quiet:
            print("No problems found")

    return 1 if any(f.severity == "error" for f in findings) else 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch documents and re-parse them as they change."""
    from .watch import watch_documents

    return watch_documents(
        rt,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print(
            "Error: API dependencies not installed. "
            "Install with: pip install litgraph[api]",
            file=sys.stderr,
        )
        print(f"Details: {e}", file=sys.stderr)
        return 1

    token_arg = getattr(args, "token", "auto")
    token = None

    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    print(f"Starting server on http://{args.host}:{args.port}")
    uvicorn.run(app, host=args.host, port=args.port, log_level="info")

    return 0


def version_text() -> str:
    return (
        f"litgraph {__version__}\n"
        f"python {platform.python_version()}\n"
        f"platform {platform.platform()}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="litgraph", description="Navigate and tangle literate Markdown code blocks"
    )
    parser.add_argument("--version", action="version", version=version_text())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/litgraph.toml, root/litgraph.toml)",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Document root directory (overrides config)",
    )
    parser.add_argument(
        "--extractor",
        choices=EXTRACTOR_KINDS,
        default=None,
        help="Block extractor (overrides config)",
    )
    parser.add_argument(
        "--log-level", default=None, help="Logging level (default: from config, WARNING)"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimize output")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    subparsers.add_parser("scan", help="Parse all documents and print counts")

    parser_blocks = subparsers.add_parser("blocks", help="List code blocks")
    parser_blocks.add_argument("document", nargs="?", help="Only this document")

    parser_def = subparsers.add_parser("def", help="Show where a block is defined")
    parser_def.add_argument("id", help="Block identifier")

    parser_refs = subparsers.add_parser("refs", help="Show occurrences and references")
    parser_refs.add_argument("id", help="Block identifier")

    parser_cycles = subparsers.add_parser("cycles", help="Report circular references")
    parser_cycles.add_argument(
        "--strict", action="store_true", help="Exit with status 1 if any cycle exists"
    )

    parser_expand = subparsers.add_parser("expand", help="Print expanded block content")
    parser_expand.add_argument("id", help="Block identifier")

    parser_graph = subparsers.add_parser("graph", help="Export identifier graph")
    parser_graph.add_argument("--dot", action="store_true", help="Graphviz DOT output")

    subparsers.add_parser("lint", help="Check for undefined references and cycles")

    parser_watch = subparsers.add_parser("watch", help="Watch documents for changes")
    parser_watch.add_argument(
        "--debounce-ms", type=int, default=None, help="Debounce window (default: from config)"
    )

    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    parser_serve.add_argument(
        "--port", type=int, default=8766, help="Port to bind to (default: 8766)"
    )
    parser_serve.add_argument(
        "--token", default="auto", help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS")

    return parser


HANDLERS = {
    "scan": cmd_scan,
    "blocks": cmd_blocks,
    "def": cmd_def,
    "refs": cmd_refs,
    "cycles": cmd_cycles,
    "expand": cmd_expand,
    "graph": cmd_graph,
    "lint": cmd_lint,
    "watch": cmd_watch,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        rt = build_runtime(
            root=args.root,
            config_path=args.config,
            extractor_kind=args.extractor,
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level, default=rt.config.logging.level)

    handler = HANDLERS.get(args.cmd)
    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        return 1

    try:
        rt.load_all()
        return handler(args, rt)
    except LiterateError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        rt.scheduler.shutdown(wait=False)


if __name__ == "__main__":
    sys.exit(main())
