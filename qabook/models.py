"""Data models for the content store: Document, Chapter, Section, QuestionAnswer."""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


def normalize_text(text: str) -> str:
    """Right-strip every line and drop blank edge lines; indentation is kept."""
    return '\n'.join(line.rstrip() for line in text.splitlines()).strip('\n')


@dataclass(frozen=True)
class QuestionAnswer:
    """One question paired with its canonical answer."""
    question: str
    answer: str

    def __post_init__(self):
        if not self.question.strip():
            raise ValueError("question must be non-empty")
        if not self.answer.strip():
            raise ValueError(f"answer must be non-empty (question: {self.question[:60]!r})")

    def to_dict(self) -> Dict:
        return {'question': self.question, 'answer': self.answer}

    @classmethod
    def from_dict(cls, data: Dict) -> 'QuestionAnswer':
        return cls(question=data['question'], answer=data['answer'])


@dataclass(frozen=True)
class Section:
    """Free-text commentary block inside a chapter. Body may be empty."""
    heading: str
    body: str = ''

    def __post_init__(self):
        if not self.heading.strip():
            raise ValueError("section heading must be non-empty")

    def to_dict(self) -> Dict:
        return {'heading': self.heading, 'body': self.body}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Section':
        return cls(heading=data['heading'], body=data.get('body', ''))


@dataclass(frozen=True)
class Chapter:
    """A numbered, titled grouping of commentary sections and questions."""
    number: int
    title: str
    sections: Tuple[Section, ...] = ()
    questions: Tuple[QuestionAnswer, ...] = ()

    def __post_init__(self):
        if self.number < 1:
            raise ValueError(f"chapter number must be positive, got {self.number}")
        if not self.title.strip():
            raise ValueError(f"chapter {self.number} has an empty title")
        # Accept lists from callers but store tuples
        object.__setattr__(self, 'sections', tuple(self.sections))
        object.__setattr__(self, 'questions', tuple(self.questions))

    def to_dict(self) -> Dict:
        return {
            'number': self.number,
            'title': self.title,
            'sections': [s.to_dict() for s in self.sections],
            'questions': [qa.to_dict() for qa in self.questions],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Chapter':
        return cls(
            number=int(data['number']),
            title=data['title'],
            sections=tuple(Section.from_dict(s) for s in data.get('sections', [])),
            questions=tuple(QuestionAnswer.from_dict(q) for q in data.get('questions', [])),
        )


@dataclass(frozen=True)
class Document:
    """
    Ordered chapters of a study document.

    Chapter numbers are unique and strictly increasing in document order.
    Instances are immutable once built.
    """
    chapters: Tuple[Chapter, ...] = ()
    title: Optional[str] = None
    _by_number: Dict[int, Chapter] = field(
        default_factory=dict, init=False, repr=False, compare=False,
    )

    def __post_init__(self):
        if self.title is not None and not self.title.strip():
            raise ValueError("document title must be non-empty or None")
        chapters = tuple(self.chapters)
        object.__setattr__(self, 'chapters', chapters)
        previous = 0
        for ch in chapters:
            if ch.number <= previous:
                raise ValueError(
                    f"chapter numbers must strictly increase: {ch.number} follows {previous}"
                )
            previous = ch.number
            self._by_number[ch.number] = ch

    def chapter(self, number: int) -> Chapter:
        """Look up a chapter by number. Raises KeyError if absent."""
        try:
            return self._by_number[number]
        except KeyError:
            raise KeyError(f"Chapter not found: {number}") from None

    def chapter_numbers(self) -> List[int]:
        return [ch.number for ch in self.chapters]

    def iter_questions(self) -> Iterator[Tuple[Chapter, int, QuestionAnswer]]:
        """Yield (chapter, 1-based index within chapter, entry) in document order."""
        for ch in self.chapters:
            for i, qa in enumerate(ch.questions, 1):
                yield ch, i, qa

    def question_count(self) -> int:
        return sum(len(ch.questions) for ch in self.chapters)

    def section_count(self) -> int:
        return sum(len(ch.sections) for ch in self.chapters)

    def to_dict(self) -> Dict:
        return {
            'title': self.title,
            'chapters': [ch.to_dict() for ch in self.chapters],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Document':
        return cls(
            chapters=tuple(Chapter.from_dict(c) for c in data.get('chapters', [])),
            title=data.get('title'),
        )
