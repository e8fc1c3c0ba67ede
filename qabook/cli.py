"""
Study notes CLI.

Usage:
    python -m qabook.cli check notes.txt
    python -m qabook.cli render notes.txt [--format text|plain|html|json] [--chapter N] [--output PATH]
    python -m qabook.cli show notes.txt <chapter>
    python -m qabook.cli search notes.txt "list comprehension" [--top-k 5] [--chapter N]
    python -m qabook.cli stats notes.txt
    python -m qabook.cli export notes.txt --anki out.tsv [--chapter N ...]
"""

import sys
import argparse
import logging
from pathlib import Path

from qabook.export import export_anki_tsv
from qabook.parser import FormatError
from qabook.render import FORMATS
from qabook.store import ContentStore


def _store(args) -> ContentStore:
    path = Path(args.file)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        sys.exit(1)
    if not path.is_file():
        print(f"Not a file: {path}", file=sys.stderr)
        sys.exit(1)
    return ContentStore(path)


def cmd_check(args):
    """Load the file and print a short summary."""
    store = _store(args)
    doc = store.document()
    title = doc.title or '(untitled)'
    print(f"OK: {title}")
    print(f"  {len(doc.chapters)} chapter(s), {doc.question_count()} question(s), "
          f"{doc.section_count()} section(s)")


def cmd_render(args):
    """Render the document (or one chapter) to stdout or a file."""
    store = _store(args)
    output = store.render(args.format, chapter=args.chapter)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, 'w', encoding='utf-8') as f:
            f.write(output)
        print(f"Wrote {args.format} output to {out_path}")
    else:
        sys.stdout.write(output)


def cmd_show(args):
    """Show one chapter in plain form."""
    store = _store(args)
    sys.stdout.write(store.render('plain', chapter=args.chapter))


def cmd_search(args):
    """Rank questions against a query."""
    store = _store(args)
    hits = store.search(args.query, top_k=args.top_k, chapter=args.chapter)
    if not hits:
        print(f"No matches for '{args.query}'.")
        return
    print(f"\n{len(hits)} match(es) for '{args.query}':\n")
    for rank, hit in enumerate(hits, 1):
        question = hit.entry.question.split('\n')[0]
        print(f"  {rank}. [Ch. {hit.chapter} #{hit.index}] {question[:80]}")
        print(f"     score={hit.score:.3f}")


def cmd_stats(args):
    """Show per-chapter counts."""
    store = _store(args)
    stats = store.stats()
    doc = store.document()
    print(f"\nTitle:     {stats['title'] or '(untitled)'}")
    print(f"Chapters:  {stats['chapters']}")
    print(f"Questions: {stats['questions']}")
    print(f"Sections:  {stats['sections']}")
    if doc.chapters:
        print("\nPer chapter:")
        for ch in doc.chapters:
            print(f"  {ch.number:>3}. {ch.title[:60]:<60} {len(ch.questions):>4} Q")


def cmd_export(args):
    """Export entries as Anki TSV."""
    store = _store(args)
    count = export_anki_tsv(store.document(), Path(args.anki), chapters=args.chapter)
    print(f"Exported {count} card(s) to {args.anki}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chapter-by-chapter study notes: check, render, search, export",
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    check_parser = subparsers.add_parser('check', help='Validate a notes file')
    check_parser.add_argument('file', help='Path to the notes file')

    render_parser = subparsers.add_parser('render', help='Render the notes')
    render_parser.add_argument('file', help='Path to the notes file')
    render_parser.add_argument('--format', choices=FORMATS, default='text',
                               help='Output format (default: text)')
    render_parser.add_argument('--chapter', type=int, default=None,
                               help='Render a single chapter')
    render_parser.add_argument('--output', default=None,
                               help='Write to this path instead of stdout')

    show_parser = subparsers.add_parser('show', help='Show one chapter')
    show_parser.add_argument('file', help='Path to the notes file')
    show_parser.add_argument('chapter', type=int, help='Chapter number')

    search_parser = subparsers.add_parser('search', help='Search questions and answers')
    search_parser.add_argument('file', help='Path to the notes file')
    search_parser.add_argument('query', help='Free-text query')
    search_parser.add_argument('--top-k', type=int, default=5,
                               help='Number of results (default: 5)')
    search_parser.add_argument('--chapter', type=int, default=None,
                               help='Restrict to one chapter')

    stats_parser = subparsers.add_parser('stats', help='Show document statistics')
    stats_parser.add_argument('file', help='Path to the notes file')

    export_parser = subparsers.add_parser('export', help='Export flashcards')
    export_parser.add_argument('file', help='Path to the notes file')
    export_parser.add_argument('--anki', required=True,
                               help='Output TSV path for Anki import')
    export_parser.add_argument('--chapter', type=int, action='append', default=None,
                               help='Chapter to export (repeatable)')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(levelname)s %(name)s: %(message)s')

    commands = {
        'check': cmd_check,
        'render': cmd_render,
        'show': cmd_show,
        'search': cmd_search,
        'stats': cmd_stats,
        'export': cmd_export,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except FormatError as e:
        print(f"Format error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyError as e:
        print(e.args[0] if e.args else "Not found", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
