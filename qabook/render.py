"""Render a Document (or a single Chapter) to text, plain, html or json."""

import html
import json
from typing import Callable, Dict, List

from qabook.models import Chapter, Document
from qabook.parser import ESCAPE, needs_escape

FORMATS = ('text', 'plain', 'html', 'json')

MEDIA_TYPES: Dict[str, str] = {
    'text': 'text/plain; charset=utf-8',
    'plain': 'text/plain; charset=utf-8',
    'html': 'text/html; charset=utf-8',
    'json': 'application/json',
}


# ---- text (canonical, re-parseable) ----

def _escape_lines(lines: List[str]) -> List[str]:
    return [ESCAPE + ln if needs_escape(ln) else ln for ln in lines]


def _block(marker: str, text: str) -> List[str]:
    """Marker line followed by escaped continuation lines."""
    first, *rest = text.split('\n')
    if first != first.lstrip():
        # Indented first line goes below a bare marker to keep its indentation
        return [marker] + _escape_lines([first] + rest)
    return [f'{marker} {first}'] + _escape_lines(rest)


def _chapter_text(ch: Chapter) -> List[str]:
    out = [f'## Chapter {ch.number}: {ch.title}', '']
    for sec in ch.sections:
        out.append(f'### {sec.heading}')
        if sec.body:
            out.extend(_escape_lines(sec.body.split('\n')))
        out.append('')
    for qa in ch.questions:
        out.extend(_block('Q:', qa.question))
        out.extend(_block('A:', qa.answer))
        out.append('')
    return out


def _text(doc: Document) -> str:
    out: List[str] = []
    if doc.title:
        out.extend(_block('#', doc.title))
        out.append('')
    for ch in doc.chapters:
        out.extend(_chapter_text(ch))
    return '\n'.join(out).rstrip('\n') + '\n'


# ---- plain (human readable) ----

def _indent(text: str, prefix: str = '   ') -> str:
    return '\n'.join(prefix + ln if ln else ln for ln in text.split('\n'))


def _chapter_plain(ch: Chapter) -> List[str]:
    heading = f'Chapter {ch.number}: {ch.title}'
    out = [heading, '=' * len(heading), '']
    for sec in ch.sections:
        out.append(sec.heading)
        out.append('-' * len(sec.heading))
        if sec.body:
            out.append(sec.body)
        out.append('')
    for i, qa in enumerate(ch.questions, 1):
        out.append(f'{i}. {qa.question}')
        out.append(_indent(qa.answer))
        out.append('')
    return out


def _plain(doc: Document) -> str:
    out: List[str] = []
    if doc.title:
        out.extend([doc.title, ''])
    for ch in doc.chapters:
        out.extend(_chapter_plain(ch))
    return '\n'.join(out).rstrip('\n') + '\n'


# ---- html ----

def _esc(text: str) -> str:
    return html.escape(text).replace('\n', '<br>\n')


def _chapter_html(ch: Chapter) -> List[str]:
    out = [f'<section class="chapter" id="chapter-{ch.number}">',
           f'<h2>Chapter {ch.number}: {_esc(ch.title)}</h2>']
    for sec in ch.sections:
        out.append('<div class="commentary">')
        out.append(f'<h3>{_esc(sec.heading)}</h3>')
        if sec.body:
            out.append(f'<p>{_esc(sec.body)}</p>')
        out.append('</div>')
    if ch.questions:
        out.append('<dl class="questions">')
        for qa in ch.questions:
            out.append(f'<dt>{_esc(qa.question)}</dt>')
            out.append(f'<dd>{_esc(qa.answer)}</dd>')
        out.append('</dl>')
    out.append('</section>')
    return out


def _html_page(title: str, body: List[str]) -> str:
    out = [
        '<!DOCTYPE html>',
        '<html>',
        '<head>',
        '<meta charset="utf-8">',
        f'<title>{html.escape(title)}</title>',
        '</head>',
        '<body>',
    ]
    out.extend(body)
    out.extend(['</body>', '</html>'])
    return '\n'.join(out) + '\n'


def _html(doc: Document) -> str:
    title = doc.title or 'Questions and answers'
    body = [f'<h1>{_esc(title)}</h1>']
    for ch in doc.chapters:
        body.extend(_chapter_html(ch))
    return _html_page(title, body)


# ---- json ----

def _json(doc: Document) -> str:
    return json.dumps(doc.to_dict(), ensure_ascii=False, indent=2, sort_keys=True) + '\n'


_DOCUMENT_RENDERERS: Dict[str, Callable[[Document], str]] = {
    'text': _text,
    'plain': _plain,
    'html': _html,
    'json': _json,
}


def _check_format(fmt: str) -> None:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format {fmt!r}; expected one of {', '.join(FORMATS)}")


def render(document: Document, fmt: str = 'text') -> str:
    """
    Render a whole document. Pure and deterministic.

    'text' output parses back to an equal Document.
    """
    _check_format(fmt)
    return _DOCUMENT_RENDERERS[fmt](document)


def render_chapter(chapter: Chapter, fmt: str = 'plain') -> str:
    """Render one chapter in any of FORMATS."""
    _check_format(fmt)
    if fmt == 'text':
        return '\n'.join(_chapter_text(chapter)).rstrip('\n') + '\n'
    if fmt == 'plain':
        return '\n'.join(_chapter_plain(chapter)).rstrip('\n') + '\n'
    if fmt == 'html':
        return _html_page(f'Chapter {chapter.number}: {chapter.title}', _chapter_html(chapter))
    return json.dumps(chapter.to_dict(), ensure_ascii=False, indent=2, sort_keys=True) + '\n'
