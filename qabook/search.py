"""
Offline TF-IDF search over question/answer entries.

Uses scikit-learn's TfidfVectorizer, the same approach as the legacy offline
textbook search, but indexes one document per entry (question + answer).
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

from qabook.models import Document, QuestionAnswer

logger = logging.getLogger("qabook.search")


@dataclass(frozen=True)
class SearchHit:
    """A ranked entry. index is 1-based within its chapter."""
    chapter: int
    index: int
    entry: QuestionAnswer
    score: float

    def to_dict(self) -> Dict:
        return {
            'chapter': self.chapter,
            'index': self.index,
            'question': self.entry.question,
            'answer': self.entry.answer,
            'score': self.score,
        }


class QASearchIndex:
    """TF-IDF index built once per Document."""

    def __init__(self, document: Document):
        self.document = document
        self._refs = [(ch.number, i, qa) for ch, i, qa in document.iter_questions()]
        self.vectorizer = TfidfVectorizer(
            stop_words='english',
            ngram_range=(1, 2),
            sublinear_tf=True,
        )
        self.vectors = None
        if self._refs:
            texts = [f"{qa.question}\n{qa.answer}" for _, _, qa in self._refs]
            try:
                self.vectors = self.vectorizer.fit_transform(texts)
            except ValueError:
                # Every token was a stop word
                logger.warning("Search index is empty: no indexable terms")
                self.vectors = None
        logger.debug("Indexed %d entries", len(self._refs))

    def __len__(self) -> int:
        return len(self._refs)

    def search(
        self,
        query: str,
        top_k: int = 5,
        chapter: Optional[int] = None,
    ) -> List[SearchHit]:
        """
        Rank entries against a free-text query.

        Args:
            query:   Natural language query
            top_k:   Maximum number of hits
            chapter: Optional chapter number filter

        Returns:
            Hits with score > 0, highest score first; ties keep document order.
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")
        if not query.strip() or self.vectors is None:
            return []

        query_vector = self.vectorizer.transform([query])
        similarities = cosine_similarity(query_vector, self.vectors)[0]

        candidates = np.arange(len(self._refs))
        if chapter is not None:
            candidates = np.array(
                [i for i, (num, _, _) in enumerate(self._refs) if num == chapter],
                dtype=int,
            )
        if candidates.size == 0:
            return []

        # Stable sort keeps document order among equal scores
        order = candidates[np.argsort(-similarities[candidates], kind='stable')]
        hits = []
        for idx in order[:top_k]:
            score = float(similarities[idx])
            if score <= 0.0:
                break
            num, i, qa = self._refs[idx]
            hits.append(SearchHit(chapter=num, index=i, entry=qa, score=round(score, 4)))
        return hits
