"""Command-line interface for annotext.

Runs the engine against files on disk.  Each file is opened in an
in-memory registry with a sync controller attached, so activating it
goes through the same canonicalise and extract cycle an editor host
would use.  Range edits are applied before activation, so --start and
--end always index the file as it is on disk.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from annotext.markup.canonical import canonical_edits, canonicalize
from annotext.markup.encoder import (
    UnknownHighlighterError,
    color_spec_for,
    encode_annotation,
)
from annotext.markup.eraser import erase_annotations
from annotext.markup.grammar import CLASS_PREFIX
from annotext.presentation import NotesPanel
from annotext.sync.buffer import DocumentRegistry
from annotext.sync.controller import AnnotationSync

if TYPE_CHECKING:
    import argparse

    from annotext.config import Settings
    from annotext.sync.buffer import SharedDocument

console = Console()


@dataclass
class _Session:
    path: Path
    registry: DocumentRegistry
    document: SharedDocument
    controller: AnnotationSync
    panel: NotesPanel


def _open_session(
    path: Path, settings: Settings, *, activate: bool = True
) -> _Session:
    """Open *path* with a sync controller attached.

    Pass ``activate=False`` to edit the raw text before the controller
    sees it; call ``_activate`` afterwards.
    """
    if not path.is_file():
        console.print(f"[red]Error:[/] {path} is not a file")
        sys.exit(1)

    registry = DocumentRegistry()
    panel = NotesPanel(settings.highlighter.style)
    controller = AnnotationSync.for_registry(
        registry, panel, cursor_strategy=settings.sync.cursor_strategy
    )
    document = registry.open(str(path), path.read_text(encoding="utf-8"))
    session = _Session(path, registry, document, controller, panel)
    if activate:
        _activate(session)
    return session


def _activate(session: _Session) -> None:
    session.registry.activate(str(session.path))


def _check_range(session: _Session, start: int, end: int) -> None:
    length = len(session.document.get_content())
    if not 0 <= start <= end <= length:
        console.print(
            f"[red]Error:[/] range {start}:{end} outside document (0:{length})"
        )
        sys.exit(1)


def _finish(session: _Session, write: bool) -> None:
    content = session.document.get_content()
    if write:
        session.path.write_text(content, encoding="utf-8")
        console.print(f"[green]Wrote[/] {session.path}")
    else:
        console.out(content, end="", highlight=False)


def _cmd_notes(path: Path, settings: Settings) -> None:
    session = _open_session(path, settings)
    console.print(session.panel.render())


def _cmd_canonicalize(path: Path, *, check: bool, write: bool) -> int:
    if not path.is_file():
        console.print(f"[red]Error:[/] {path} is not a file")
        return 1

    content = path.read_text(encoding="utf-8")
    edits = canonical_edits(content)
    if check:
        if edits:
            console.print(
                f"[yellow]{path}[/]: {len(edits)} indicator runs need rewriting"
            )
            return 1
        console.print(f"[green]{path}[/]: canonical")
        return 0

    canonical = canonicalize(content)
    if write:
        if canonical != content:
            path.write_text(canonical, encoding="utf-8")
            console.print(f"[green]Wrote[/] {path}")
        return 0
    console.out(canonical, end="", highlight=False)
    return 0


def _cmd_highlight(args: argparse.Namespace, settings: Settings) -> None:
    session = _open_session(args.file, settings, activate=False)
    _check_range(session, args.start, args.end)

    try:
        color = color_spec_for(args.color, settings.highlighter)
    except UnknownHighlighterError:
        known = ", ".join(settings.highlighter.order)
        console.print(f"[red]Error:[/] unknown highlighter {args.color!r} ({known})")
        sys.exit(1)

    selected = session.document.get_content()[args.start : args.end]
    markup = encode_annotation(selected, color, args.note, args.tag or ())
    session.document.replace_range(args.start, args.end, markup)
    _activate(session)
    _finish(session, args.write)


def _cmd_erase(args: argparse.Namespace, settings: Settings) -> None:
    session = _open_session(args.file, settings, activate=False)
    _check_range(session, args.start, args.end)

    selected = session.document.get_content()[args.start : args.end]
    session.document.replace_range(args.start, args.end, erase_annotations(selected))
    _activate(session)
    _finish(session, args.write)


def _cmd_highlighters(settings: Settings) -> None:
    config = settings.highlighter
    table = Table(title=f"Highlighters ({config.method})")
    table.add_column("Name")
    table.add_column("Colour")
    table.add_column("Class")

    for key in config.order:
        table.add_row(key, config.highlighters[key], f"{CLASS_PREFIX}{key.lower()}")

    console.print(table)


def _build_parser():
    """Build argparse parser for annotext subcommands."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="annotext",
        description="Inline highlight annotations for plain text documents.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # notes
    notes_p = sub.add_parser("notes", help="List highlights, notes and tags")
    notes_p.add_argument("file", type=Path, help="Document to read")

    # canonicalize
    canon_p = sub.add_parser(
        "canonicalize", help="Normalise note indicators in a document"
    )
    canon_p.add_argument("file", type=Path, help="Document to normalise")
    mode = canon_p.add_mutually_exclusive_group()
    mode.add_argument(
        "--check", action="store_true", help="Exit 1 if the file is not canonical"
    )
    mode.add_argument("--write", action="store_true", help="Rewrite the file")

    # highlight
    hl_p = sub.add_parser("highlight", help="Highlight a character range")
    hl_p.add_argument("file", type=Path, help="Document to edit")
    hl_p.add_argument("--start", type=int, required=True, help="Start offset")
    hl_p.add_argument("--end", type=int, required=True, help="End offset")
    hl_p.add_argument("--color", required=True, help="Highlighter name (e.g. Yellow)")
    hl_p.add_argument("--note", default=None, help="Note to attach")
    hl_p.add_argument("--tag", action="append", help="Tag to attach (repeatable)")
    hl_p.add_argument("--write", action="store_true", help="Rewrite the file")

    # erase
    erase_p = sub.add_parser("erase", help="Remove highlights in a character range")
    erase_p.add_argument("file", type=Path, help="Document to edit")
    erase_p.add_argument("--start", type=int, required=True, help="Start offset")
    erase_p.add_argument("--end", type=int, required=True, help="End offset")
    erase_p.add_argument("--write", action="store_true", help="Rewrite the file")

    # highlighters
    sub.add_parser("highlighters", help="List configured highlighters")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Inline highlight annotations for plain text documents.

    Usage:
        uv run annotext <command> [options]

    Commands:
        notes <file>          List highlights, notes and tags
        canonicalize <file>   Normalise note indicators (--check, --write)
        highlight <file>      Highlight --start/--end with --color
        erase <file>          Remove highlights in --start/--end
        highlighters          List configured highlighters
    """
    from annotext import _setup_logging
    from annotext.config import get_settings

    parser = _build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    settings = get_settings()
    _setup_logging(settings.app.log_dir)

    match args.command:
        case "notes":
            _cmd_notes(args.file, settings)
        case "canonicalize":
            code = _cmd_canonicalize(args.file, check=args.check, write=args.write)
            if code:
                sys.exit(code)
        case "highlight":
            _cmd_highlight(args, settings)
        case "erase":
            _cmd_erase(args, settings)
        case "highlighters":
            _cmd_highlighters(settings)


if __name__ == "__main__":
    main()
