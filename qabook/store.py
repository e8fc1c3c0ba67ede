"""
Content store: a lazily loaded, cached Document plus its search index.

Loading happens once per store; the Document is immutable afterwards, so the
lock only guards the first load.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Optional

from qabook.models import Chapter, Document
from qabook.parser import load
from qabook.render import render, render_chapter
from qabook.search import QASearchIndex, SearchHit

logger = logging.getLogger("qabook.store")


class ContentStore:
    """File-backed, read-only store for one study document."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._document: Optional[Document] = None
        self._index: Optional[QASearchIndex] = None

    @classmethod
    def from_document(cls, document: Document, path=None) -> ContentStore:
        """Store around an already-loaded Document (no file read)."""
        store = cls(path or '<memory>')
        store._document = document
        return store

    def document(self) -> Document:
        """Return the cached Document, loading it on first use (may raise FormatError)."""
        if self._document is not None:
            return self._document
        with self._lock:
            if self._document is None:
                logger.info("Loading content from %s", self.path)
                self._document = load(self.path)
        return self._document

    def chapter(self, number: int) -> Chapter:
        return self.document().chapter(number)

    def render(self, fmt: str = 'text', chapter: Optional[int] = None) -> str:
        if chapter is None:
            return render(self.document(), fmt)
        return render_chapter(self.chapter(chapter), fmt)

    def _search_index(self) -> QASearchIndex:
        if self._index is not None:
            return self._index
        document = self.document()
        with self._lock:
            if self._index is None:
                self._index = QASearchIndex(document)
        return self._index

    def search(self, query: str, top_k: int = 5, chapter: Optional[int] = None) -> List[SearchHit]:
        if chapter is not None:
            self.chapter(chapter)  # KeyError for unknown chapters
        return self._search_index().search(query, top_k=top_k, chapter=chapter)

    def stats(self) -> Dict:
        doc = self.document()
        return {
            'title': doc.title,
            'chapters': len(doc.chapters),
            'questions': doc.question_count(),
            'sections': doc.section_count(),
            'per_chapter': {ch.number: len(ch.questions) for ch in doc.chapters},
        }
