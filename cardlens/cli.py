#!/usr/bin/env python3
"""
CardLens — tavern character card extraction from PNG metadata

Command-line interface.

Usage:
    cardlens extract <file>           Show the embedded character card
    cardlens extract <file> --json    Print the card as JSON
    cardlens chunks <file>            List the PNG's text chunks
    cardlens markdown <file>          Render the card to <name>.md

Exit status: 0 card found, 1 error, 2 no card in the file.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path

# Ensure cardlens package is importable
cardlens_root = Path(__file__).resolve().parent.parent
if str(cardlens_root) not in sys.path:
    sys.path.insert(0, str(cardlens_root))

from cardlens import __version__
from cardlens.card import CharacterMetadata
from cardlens.chunks import list_text_chunks
from cardlens.core import InvalidFormatError, check_signature, extract_character
from cardlens.render import render_markdown, sanitize_filename

EXIT_NOT_FOUND = 2


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI colors."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @staticmethod
    def off():
        C.BOLD = C.DIM = C.RED = C.GREEN = C.YELLOW = C.CYAN = C.RESET = ""


def header(text: str) -> str:
    return f"\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}\n{C.BOLD}  {text}{C.RESET}\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"


def ok(text: str) -> str:
    return f"  {C.GREEN}✓{C.RESET} {text}"


def warn(text: str) -> str:
    return f"  {C.YELLOW}⚠{C.RESET} {text}"


def fail(text: str) -> str:
    return f"  {C.RED}✗{C.RESET} {text}"


def filesize(n: int) -> str:
    if n > 1_000_000:
        return f"{n/1_000_000:.1f} MB"
    if n > 1_000:
        return f"{n/1_000:.1f} KB"
    return f"{n} B"


def preview(value, width: int = 70) -> str:
    # creator_notes / system_prompt are passed through as any JSON value
    flat = " ".join(str(value).split())
    return flat if len(flat) <= width else flat[:width - 1] + "…"


def load_card(args) -> CharacterMetadata | None:
    data = Path(args.file).read_bytes()
    card = extract_character(data, scan=not getattr(args, "no_scan", False))
    if card is None:
        print(warn(f"No character card found in {args.file}"), file=sys.stderr)
    return card


# ============================================================================
# Commands
# ============================================================================

def cmd_extract(args) -> int:
    """Show the card embedded in a PNG."""
    card = load_card(args)
    if card is None:
        return EXIT_NOT_FOUND

    if args.json or args.output:
        payload = json.dumps(card.to_dict(), indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload + "\n", encoding="utf-8")
            print(ok(f"Wrote {args.output}"))
        else:
            print(payload)
        return 0

    print(header(f"CARD: {card.name}"))
    for field in ("description", "personality", "scenario", "first_mes", "mes_example"):
        value = getattr(card, field)
        shown = preview(value) if value else f"{C.DIM}(empty){C.RESET}"
        print(f"  {C.BOLD}{field:<14}{C.RESET}{shown}")
    if card.system_prompt:
        print(f"  {C.BOLD}{'system_prompt':<14}{C.RESET}{preview(card.system_prompt)}")
    if card.creator_notes:
        print(f"  {C.BOLD}{'creator_notes':<14}{C.RESET}{preview(card.creator_notes)}")
    if card.tags:
        print(f"  {C.BOLD}{'tags':<14}{C.RESET}{', '.join(card.tags)}")
    return 0


def cmd_chunks(args) -> int:
    """List the text chunks of a PNG."""
    data = Path(args.file).read_bytes()
    check_signature(data)

    print(header(f"CHUNKS: {args.file}"))
    print(f"  {C.DIM}Size: {filesize(len(data))}{C.RESET}")

    text_chunks = list_text_chunks(data)
    if not text_chunks:
        print(warn("No text chunks"))
        return 0

    for tc in text_chunks:
        marker = f" {C.GREEN}[card carrier]{C.RESET}" if tc.is_card_carrier() else ""
        print(f"  {C.DIM}[{tc.chunk.offset:#08x}]{C.RESET} {C.BOLD}{tc.chunk_type}{C.RESET} "
              f"{tc.keyword!r} {filesize(tc.chunk.length)}{marker}")
    return 0


def cmd_markdown(args) -> int:
    """Render the card as a Markdown file."""
    card = load_card(args)
    if card is None:
        return EXIT_NOT_FOUND

    output = Path(args.output) if args.output else Path(f"{sanitize_filename(card.name)}.md")
    output.write_text(render_markdown(card), encoding="utf-8")
    print(ok(f"Wrote {output}"))
    return 0


# ============================================================================
# Main
# ============================================================================

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="cardlens",
        description="CardLens — extract tavern character cards from PNG metadata",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
        examples:
          cardlens extract portrait.png
          cardlens extract portrait.png --json -o card.json
          cardlens chunks portrait.png
          cardlens markdown portrait.png -o notes.md
        """),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log chunk walk and scan details")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    # extract
    p = sub.add_parser("extract", aliases=["x"], help="Show the embedded character card")
    p.add_argument("file", help="PNG file")
    p.add_argument("--json", action="store_true", help="Print the card as JSON")
    p.add_argument("-o", "--output", help="Write the card as JSON to this file")
    p.add_argument("--no-scan", action="store_true", help="Skip the brute-force byte scan")

    # chunks
    p = sub.add_parser("chunks", help="List the PNG's text chunks")
    p.add_argument("file", help="PNG file")

    # markdown
    p = sub.add_parser("markdown", aliases=["md"], help="Render the card as Markdown")
    p.add_argument("file", help="PNG file")
    p.add_argument("-o", "--output", help="Output file path (default: <name>.md)")
    p.add_argument("--no-scan", action="store_true", help="Skip the brute-force byte scan")

    args = parser.parse_args(argv)

    if args.no_color:
        C.off()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch
    commands = {
        "extract": cmd_extract, "x": cmd_extract,
        "chunks": cmd_chunks,
        "markdown": cmd_markdown, "md": cmd_markdown,
    }

    handler = commands[args.command]
    try:
        return handler(args)
    except FileNotFoundError as e:
        print(fail(f"File not found: {e.filename}"), file=sys.stderr)
        return 1
    except InvalidFormatError as e:
        print(fail(str(e)), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
