"""
Structured-text loader for study documents.

Format (markers only at column 0):

    # Document title
    ## Chapter 1: Title
    ### Commentary heading
    Q: question text
    A: answer text

Non-marker lines continue the block opened by the last marker. A continuation
line that would read as a marker, or that starts with a backslash, is written
with a leading backslash which the parser removes. Lines starting with '%' are
comments.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional, TextIO, Union

from qabook.models import Chapter, Document, QuestionAnswer, Section, normalize_text

logger = logging.getLogger("qabook.parser")

CHAPTER_RE = re.compile(r'^## Chapter (?P<number>\S+?):(?P<title>.*)$')
TITLE_PREFIX = '# '
CHAPTER_PREFIX = '## '
SECTION_PREFIX = '### '
QUESTION_PREFIX = 'Q:'
ANSWER_PREFIX = 'A:'
COMMENT_PREFIX = '%'
ESCAPE = '\\'

MARKER_PREFIXES = ('#', QUESTION_PREFIX, ANSWER_PREFIX, COMMENT_PREFIX, ESCAPE)


class FormatError(ValueError):
    """Raised when structured text does not describe a valid document."""

    def __init__(self, message: str, line: Optional[int] = None, source: str = '<string>'):
        self.message = message
        self.line = line
        self.source = source
        location = f"{source}:{line}" if line is not None else source
        super().__init__(f"{location}: {message}")


def needs_escape(line: str) -> bool:
    """True if a continuation line would be read as a marker without escaping."""
    return line.startswith(MARKER_PREFIXES)


@dataclass
class _Block:
    """A marker-opened block under construction."""
    kind: str  # 'title' | 'section' | 'question' | 'answer'
    line: int
    head: str
    lines: List[str] = field(default_factory=list)

    def text(self) -> str:
        # Text on the marker line loses its leading space; continuation lines keep indentation
        return normalize_text('\n'.join([self.head.lstrip()] + self.lines))


class _Builder:
    """Accumulates blocks into chapters and enforces document invariants."""

    def __init__(self, source: str):
        self.source = source
        self.title: Optional[str] = None
        self.chapters: List[Chapter] = []
        self._chapter_no: Optional[int] = None
        self._chapter_title = ''
        self._sections: List[Section] = []
        self._questions: List[QuestionAnswer] = []
        self._pending_question: Optional[_Block] = None
        self.block: Optional[_Block] = None

    def error(self, message: str, line: Optional[int]) -> FormatError:
        return FormatError(message, line=line, source=self.source)

    # ---- block lifecycle ----

    def open_block(self, block: _Block) -> None:
        self.close_block()
        if block.kind == 'answer':
            if self._pending_question is None:
                raise self.error("answer without a preceding question", block.line)
        elif self._pending_question is not None:
            raise self.error(
                "question has no answer", self._pending_question.line,
            )
        self.block = block

    def close_block(self) -> None:
        block, self.block = self.block, None
        if block is None:
            return
        text = block.text()
        if block.kind == 'title':
            if not text:
                raise self.error("empty document title", block.line)
            self.title = text
        elif block.kind == 'section':
            # heading lives on the marker line, body on continuation lines
            self._sections.append(Section(
                heading=normalize_text(block.head),
                body=normalize_text('\n'.join(block.lines)),
            ))
        elif block.kind == 'question':
            if not text:
                raise self.error("empty question", block.line)
            self._pending_question = block
        elif block.kind == 'answer':
            if not text:
                raise self.error("empty answer", block.line)
            question = self._pending_question.text()
            self._pending_question = None
            self._questions.append(QuestionAnswer(question=question, answer=text))

    # ---- chapters ----

    def start_chapter(self, number: int, title: str, line: int) -> None:
        self.close_block()
        self._check_no_pending()
        self.finish_chapter()
        if self.chapters and number <= self.chapters[-1].number:
            previous = self.chapters[-1].number
            if any(ch.number == number for ch in self.chapters):
                raise self.error(f"duplicate chapter number {number}", line)
            raise self.error(
                f"chapter number {number} does not follow chapter {previous}", line,
            )
        self._chapter_no = number
        self._chapter_title = title

    def in_chapter(self) -> bool:
        return self._chapter_no is not None

    def finish_chapter(self) -> None:
        if self._chapter_no is None:
            return
        self.chapters.append(Chapter(
            number=self._chapter_no,
            title=self._chapter_title,
            sections=tuple(self._sections),
            questions=tuple(self._questions),
        ))
        logger.debug(
            "Chapter %d: %d question(s), %d section(s)",
            self._chapter_no, len(self._questions), len(self._sections),
        )
        self._chapter_no = None
        self._sections = []
        self._questions = []

    def _check_no_pending(self) -> None:
        if self._pending_question is not None:
            raise self.error("question has no answer", self._pending_question.line)

    def finish(self) -> Document:
        self.close_block()
        self._check_no_pending()
        self.finish_chapter()
        return Document(chapters=tuple(self.chapters), title=self.title)


def _parse_chapter_marker(line: str, lineno: int, source: str):
    m = CHAPTER_RE.match(line)
    if not m:
        raise FormatError(
            f"malformed chapter marker {line.strip()!r} "
            "(expected '## Chapter <n>: <title>')",
            line=lineno, source=source,
        )
    raw_number = m.group('number')
    if not (raw_number.isascii() and raw_number.isdigit()) or int(raw_number) < 1:
        raise FormatError(
            f"chapter number must be a positive integer, got {raw_number!r}",
            line=lineno, source=source,
        )
    title = m.group('title').strip()
    if not title:
        raise FormatError(f"chapter {raw_number} has no title", line=lineno, source=source)
    return int(raw_number), title


def parse(text: str, source: str = '<string>') -> Document:
    """
    Parse structured text into a Document.

    Args:
        text:   Document text
        source: Name used in error locations (usually the file path)

    Raises:
        FormatError: on any structural problem, with the offending line.
    """
    builder = _Builder(source)

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.rstrip()

        if line.startswith(COMMENT_PREFIX):
            continue

        if line.startswith(SECTION_PREFIX) or line == '###':
            if not builder.in_chapter():
                raise FormatError("section outside of a chapter", line=lineno, source=source)
            heading = line[len('###'):].strip()
            if not heading:
                raise FormatError("empty section heading", line=lineno, source=source)
            builder.open_block(_Block('section', lineno, heading))
        elif line.startswith(CHAPTER_PREFIX) or line == '##':
            number, title = _parse_chapter_marker(line, lineno, source)
            builder.start_chapter(number, title, lineno)
        elif line.startswith(TITLE_PREFIX) or line == '#':
            if builder.in_chapter() or builder.chapters:
                raise FormatError(
                    "document title must come before the first chapter",
                    line=lineno, source=source,
                )
            if builder.title is not None or (builder.block and builder.block.kind == 'title'):
                raise FormatError("duplicate document title", line=lineno, source=source)
            builder.open_block(_Block('title', lineno, line[len('#'):]))
        elif line.startswith('#'):
            raise FormatError(f"malformed marker {line!r}", line=lineno, source=source)
        elif line.startswith(QUESTION_PREFIX):
            if not builder.in_chapter():
                raise FormatError("question outside of a chapter", line=lineno, source=source)
            builder.open_block(_Block('question', lineno, line[len(QUESTION_PREFIX):]))
        elif line.startswith(ANSWER_PREFIX):
            if not builder.in_chapter():
                raise FormatError("answer outside of a chapter", line=lineno, source=source)
            builder.open_block(_Block('answer', lineno, line[len(ANSWER_PREFIX):]))
        else:
            if line.startswith(ESCAPE):
                line = line[len(ESCAPE):]
            if builder.block is not None:
                builder.block.lines.append(line)
            elif line.strip():
                # Text between a chapter marker and its first block
                where = "inside chapter before any marker" if builder.in_chapter() else "before the first chapter"
                raise FormatError(f"unexpected text {where}", line=lineno, source=source)

    document = builder.finish()
    logger.info(
        "Loaded %s: %d chapter(s), %d question(s)",
        source, len(document.chapters), document.question_count(),
    )
    return document


def _decode(data: bytes, source: str) -> str:
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        line = data[:e.start].count(b'\n') + 1
        raise FormatError(f"invalid UTF-8 (byte offset {e.start})", line=line, source=source) from None


def load(source: Union[Path, TextIO, BinaryIO, str]) -> Document:
    """
    Load a Document.

    Args:
        source: a Path (read as UTF-8), an open text or binary file, or document text.

    Raises:
        FormatError: on structural problems and on undecodable input.
    """
    if isinstance(source, Path):
        with open(source, 'rb') as f:
            return parse(_decode(f.read(), str(source)), source=str(source))
    if hasattr(source, 'read'):
        name = str(getattr(source, 'name', '<stream>'))
        try:
            data = source.read()
        except UnicodeDecodeError as e:
            # Text stream decoded in chunks: the line is unknown
            raise FormatError(f"invalid {e.encoding or 'UTF-8'} text", source=name) from None
        if isinstance(data, bytes):
            data = _decode(data, name)
        return parse(data, source=name)
    return parse(source)
