"""Export question/answer entries to Anki-compatible TSV."""

import csv
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from qabook.models import Chapter, Document, QuestionAnswer

logger = logging.getLogger("qabook.export")


def _slug(text: str) -> str:
    return re.sub(r'[^a-z0-9]+', '_', text.lower()).strip('_')


def _format_back(chapter: Chapter, qa: QuestionAnswer) -> str:
    """Back of an Anki card: answer + chapter citation. Newlines become <br>."""
    answer = qa.answer.replace('\n', '<br>')
    return f'{answer} [Ch. {chapter.number}: {chapter.title}]'


def _format_tags(document: Document, chapter: Chapter) -> str:
    tags = [f'chapter_{chapter.number}']
    if document.title:
        slug = _slug(document.title)
        if slug:
            tags.append(slug)
    return ' '.join(tags)


def export_anki_tsv(
    document: Document,
    path: Path,
    chapters: Optional[Iterable[int]] = None,
) -> int:
    """
    Export entries to Anki-compatible TSV.

    Format: Front, Back, Tags (no header row, tab-separated as Anki expects).

    Args:
        document: Loaded document
        path:     Output file path
        chapters: Optional chapter numbers to restrict the export to

    Returns:
        Number of rows exported.

    Raises:
        KeyError: if a requested chapter does not exist.
    """
    if chapters is None:
        selected: List[Chapter] = list(document.chapters)
    else:
        selected = [document.chapter(n) for n in sorted(set(chapters))]

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f, delimiter='\t', quoting=csv.QUOTE_MINIMAL)
        for chapter in selected:
            for qa in chapter.questions:
                front = qa.question.replace('\n', '<br>')
                writer.writerow([front, _format_back(chapter, qa), _format_tags(document, chapter)])
                count += 1
    logger.info("Exported %d card(s) to %s", count, path)
    return count
