"""Tests for qabook/store.py -- lazy loading, lookup, rendering, stats."""

import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from qabook.parser import FormatError, parse
from qabook.store import ContentStore

NOTES = """# Notes
## Chapter 1: Basics
### Intro
Commentary.
Q: What is a generator?
A: A function that yields values lazily.
## Chapter 2: Later
Q: What is a context manager?
A: An object used with the with statement.
Q: Why close files?
A: To release handles promptly.
"""


def _write(tmp: str, text: str = NOTES) -> Path:
    path = Path(tmp) / 'notes.txt'
    path.write_text(text, encoding='utf-8')
    return path


def test_store_loads_lazily_and_caches():
    with tempfile.TemporaryDirectory() as tmp:
        path = _write(tmp)
        store = ContentStore(path)
        doc = store.document()
        # Later edits to the file are not picked up
        path.write_text('', encoding='utf-8')
        assert store.document() is doc
        assert store.chapter(2).title == 'Later'


def test_store_missing_file_raises_on_first_use():
    store = ContentStore('/nonexistent/notes.txt')
    with pytest.raises(FileNotFoundError):
        store.document()


def test_store_malformed_file_raises_format_error():
    with tempfile.TemporaryDirectory() as tmp:
        store = ContentStore(_write(tmp, '## Chapter 1: A\nQ: dangling\n'))
        with pytest.raises(FormatError):
            store.document()


def test_store_chapter_lookup_unknown():
    store = ContentStore.from_document(parse(NOTES))
    with pytest.raises(KeyError):
        store.chapter(5)


def test_store_render_document_and_chapter():
    store = ContentStore.from_document(parse(NOTES))
    assert parse(store.render('text')) == store.document()
    chapter_plain = store.render('plain', chapter=2)
    assert chapter_plain.startswith('Chapter 2: Later')
    assert 'Basics' not in chapter_plain


def test_store_search():
    store = ContentStore.from_document(parse(NOTES))
    hits = store.search('context manager')
    assert hits[0].chapter == 2
    assert store.search('generator', chapter=2) == []
    with pytest.raises(KeyError):
        store.search('generator', chapter=9)


def test_store_stats():
    store = ContentStore.from_document(parse(NOTES))
    stats = store.stats()
    assert stats == {
        'title': 'Notes',
        'chapters': 2,
        'questions': 3,
        'sections': 1,
        'per_chapter': {1: 1, 2: 2},
    }
