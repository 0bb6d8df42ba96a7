"""Display cleanup for extracted report sections.

Converts the model's markdown-ish text into lightweight HTML markup:
  - **bold** / ***bold italic*** / *italic* -> <strong> / <em>
  - "- item" lines -> <li>, consecutive items wrapped in one <ul>
  - "1. step" -> <strong>1.</strong> step (only the numeral is emphasised)
  - "Benefits:" / "Risks:" sub-headings -> <h4> (composite section only)

clean_text() is idempotent: running it over its own output changes nothing.
sanitize_completion() is the one-shot HTML scrub applied to the raw
completion before parsing; it is not part of clean_text() because escaping
twice is not idempotent.
"""

import re

from bs4 import BeautifulSoup, Comment

LIST_OPEN = '<ul class="pl-5 list-disc">'
LIST_CLOSE = '</ul>'
SUBHEADING_TEMPLATE = '<h4 class="text-base font-semibold mt-4 mb-2">{}:</h4>'

_BLANK_LINES_RE = re.compile(r'\n\s*\n')
_BULLET_RE = re.compile(r'^-\s+(.*?)\s*$')
# A marker run must be exactly as long as the emphasis it opens or closes,
# and a span never crosses markup
_BOLD_ITALIC_RE = re.compile(r'(?<!\*)\*\*\*(?=[^\s*])([^<>\n]+?)(?<=[^\s*])\*\*\*(?!\*)')
_BOLD_RE = re.compile(r'(?<!\*)\*\*(?=[^\s*])([^<>\n]+?)(?<=[^\s*])\*\*(?!\*)')
_ITALIC_RE = re.compile(r'(?<![*\w])\*(?=[^\s*])([^*<>\n]+?)(?<=[^\s*])\*(?![*\w])')
_NUMBERED_RE = re.compile(r'^(\d+\.)[ \t]+', re.MULTILINE)

# Tags whose content is never report text
_DROPPED_TAGS = ['script', 'style']


def clean_text(text: str, lists: bool = True, numbered: bool = True,
               subheadings: tuple = ()) -> str:
    """Return a display-ready version of one extracted section."""
    if not text:
        return ''

    cleaned = text.replace('\r\n', '\n')
    cleaned = _BLANK_LINES_RE.sub('\n\n', cleaned).strip()

    if lists:
        cleaned = _wrap_lists(cleaned)
    if subheadings:
        cleaned = _format_subheadings(cleaned, subheadings)

    cleaned = _apply_emphasis(cleaned)

    if numbered:
        cleaned = _NUMBERED_RE.sub(r'<strong>\1</strong> ', cleaned)

    return cleaned.strip()


def _wrap_lists(text: str) -> str:
    """Turn "- " lines into <li> items inside a single <ul> per run.

    Lines that are already list markup keep their structure, so a second
    pass over cleaned text does not nest or re-open lists.
    """
    out = []
    in_list = False

    for line in text.split('\n'):
        bullet = _BULLET_RE.match(line)
        if bullet:
            line = f'<li>{bullet.group(1)}</li>'

        if line.startswith('<ul'):
            in_list = True
        elif line == LIST_CLOSE:
            in_list = False
        elif line.startswith('<li>'):
            if not in_list:
                out.append(LIST_OPEN)
                in_list = True
        elif in_list:
            out.append(LIST_CLOSE)
            in_list = False
        out.append(line)

    # last line was a list item
    if in_list:
        out.append(LIST_CLOSE)

    return '\n'.join(out)


def _format_subheadings(text: str, names: tuple) -> str:
    alternation = '|'.join(re.escape(n) for n in names)
    pattern = re.compile(rf'^[*_]*({alternation})[*_]*[ \t]*:[*_]*',
                         re.IGNORECASE | re.MULTILINE)
    return pattern.sub(lambda m: SUBHEADING_TEMPLATE.format(m.group(1).title()), text)


def _apply_emphasis(text: str) -> str:
    # Converting one span can expose another, so repeat until nothing changes.
    # Every round removes markers, so the loop ends.
    while True:
        converted = _BOLD_ITALIC_RE.sub(r'<strong><em>\1</em></strong>', text)
        converted = _BOLD_RE.sub(r'<strong>\1</strong>', converted)
        converted = _ITALIC_RE.sub(r'<em>\1</em>', converted)
        if converted == text:
            return text
        text = converted


def _html_text(markup: str) -> str:
    soup = BeautifulSoup(markup, 'html.parser')
    for tag in soup(_DROPPED_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()
    return soup.get_text()


def sanitize_completion(raw: str) -> str:
    """Remove HTML the model emitted and escape stray angle brackets."""
    if not raw:
        return ''
    text = _html_text(raw)
    return text.replace('<', '&lt;').replace('>', '&gt;')


def to_plain_text(cleaned: str) -> str:
    """Drop the markup added by clean_text(), e.g. for share text."""
    if not cleaned:
        return ''
    return re.sub(r'[ \t]+', ' ', _html_text(cleaned)).strip()
