"""Tests for qabook/cli.py -- subcommands and exit codes."""

import csv
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from qabook import cli
from qabook.parser import parse

NOTES = """# Notes
## Chapter 1: Basics
Q: What is a generator?
A: A function that yields values lazily.
## Chapter 2: Later
Q: What is a context manager?
A: An object used with the with statement.
"""


def _write(tmp: str, text: str = NOTES) -> str:
    path = Path(tmp) / 'notes.txt'
    path.write_text(text, encoding='utf-8')
    return str(path)


def test_check_ok(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['check', _write(tmp)])
    out = capsys.readouterr().out
    assert 'OK: Notes' in out
    assert '2 chapter(s), 2 question(s)' in out


def test_check_reports_format_error(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        path = _write(tmp, '## Chapter 1: A\nQ: dangling\n')
        with pytest.raises(SystemExit) as exc:
            cli.main(['check', path])
    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert 'question has no answer' in err
    assert ':2:' in err


def test_missing_file_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(['check', '/nonexistent/notes.txt'])
    assert exc.value.code == 1
    assert 'File not found' in capsys.readouterr().err


def test_render_text_to_stdout_round_trips(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['render', _write(tmp)])
    out = capsys.readouterr().out
    assert parse(out) == parse(NOTES)


def test_render_html_to_file():
    with tempfile.TemporaryDirectory() as tmp:
        out_path = Path(tmp) / 'out' / 'notes.html'
        cli.main(['render', _write(tmp), '--format', 'html', '--output', str(out_path)])
        html = out_path.read_text(encoding='utf-8')
    assert '<h1>Notes</h1>' in html


def test_show_chapter(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['show', _write(tmp), '2'])
    out = capsys.readouterr().out
    assert out.startswith('Chapter 2: Later')
    assert 'generator' not in out


def test_show_unknown_chapter_exits(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            cli.main(['show', _write(tmp), '9'])
    assert exc.value.code == 1
    assert 'Chapter not found: 9' in capsys.readouterr().err


def test_search(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['search', _write(tmp), 'context manager'])
    out = capsys.readouterr().out
    assert '[Ch. 2 #1] What is a context manager?' in out


def test_search_no_matches(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['search', _write(tmp), 'zebra'])
    assert "No matches for 'zebra'" in capsys.readouterr().out


def test_stats(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        cli.main(['stats', _write(tmp)])
    out = capsys.readouterr().out
    assert 'Chapters:  2' in out
    assert 'Questions: 2' in out


def test_export_chapter(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        out_path = Path(tmp) / 'cards.tsv'
        cli.main(['export', _write(tmp), '--anki', str(out_path), '--chapter', '1'])
        with open(out_path, 'r', encoding='utf-8') as f:
            rows = list(csv.reader(f, delimiter='\t'))
    assert len(rows) == 1
    assert rows[0][0] == 'What is a generator?'
    assert 'Exported 1 card(s)' in capsys.readouterr().out


def test_no_command_prints_help(capsys):
    cli.main([])
    assert 'usage' in capsys.readouterr().out.lower()


def test_check_invalid_utf8_exits(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / 'latin1.txt'
        path.write_bytes(b"## Chapter 1: T\nQ: \xff\nA: b\n")
        with pytest.raises(SystemExit) as exc:
            cli.main(['check', str(path)])
    assert exc.value.code == 1
    err = capsys.readouterr().err
    assert 'invalid UTF-8' in err
    assert ':2:' in err


def test_check_unicode_digit_chapter_exits(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        path = _write(tmp, "## Chapter ²: Title\nQ: a\nA: b\n")
        with pytest.raises(SystemExit) as exc:
            cli.main(['check', path])
    assert exc.value.code == 1
    assert 'positive integer' in capsys.readouterr().err


def test_directory_argument_exits(capsys):
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(SystemExit) as exc:
            cli.main(['check', tmp])
    assert exc.value.code == 1
    assert 'Not a file' in capsys.readouterr().err
