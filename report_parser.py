"""Section parser for free-text career report completions.

A header is one line of the form

    header  := decor? ordinal? decor? NAME decor? ':' decor?
    ordinal := digits ('.' | ')')
    decor   := up to three '*' or '_'

where NAME is one of the expected section names, matched case-insensitively
with any run of spaces or tabs between its words. Markdown heading lines
(``### Title``) are rewritten as ``Title:`` labels before scanning.

Two strategies run in order and the first one that finds a header wins:

    BoundaryScanStrategy     all header anchors in one pass; each section is
                             the text between its header and the next anchor
    PerSectionRegexStrategy  each name on its own (colon, dash or line break
                             after it), non-greedy up to the next known name

After the last expected header, any other title-only line (``Conclusion:``,
``5) Final thoughts:``) ends the section and its body is dropped.

Missing sections come back as empty strings. Nothing here raises on odd
model output; defaulting happens when the report is assembled.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import NamedTuple

from sections import COMPOSITE_SUBSECTIONS, REPORT_SECTIONS

logger = logging.getLogger(__name__)

_DECOR = r'[*_]{0,3}'
_ORDINAL = r'\d+[.)]'
_LEAD = rf'^[ \t]*{_DECOR}[ \t]*(?:{_ORDINAL}[ \t]*)?{_DECOR}[ \t]*'
# A closing emphasis marker after the colon is followed by whitespace; an
# opening one belongs to the body text.
_CLOSE_DECOR = r'(?:[ \t]*[*_]{1,3}(?=\s|$))?'
_TAIL = rf'[ \t]*{_DECOR}[ \t]*:{_CLOSE_DECOR}[ \t]*'

# "#" run followed by whitespace; "#1 priority" is body text
_HEADING_LINE_RE = re.compile(r'^[ \t]*#{1,6}[ \t]+(.*?)[ \t]*$', re.MULTILINE)

# Title-only line ending in a colon, numbered or not ("Additional Notes:",
# "5) final thoughts:"). Only looked for after the last expected header.
_FOREIGN_HEADER_RE = re.compile(
    rf'^[ \t]*{_DECOR}[ \t]*(?:(?P<ordinal>\d+)[.)][ \t]*)?{_DECOR}[ \t]*'
    + r"(?P<title>[A-Za-z][\w'/&-]*(?:[ \t]+[\w'/&-]+){0,5})"
    + _TAIL + '$',
    re.MULTILINE,
)


def normalize_completion(raw: str) -> str:
    """Unify line endings and turn markdown headings into "Title:" lines."""
    text = (raw or '').replace('\r\n', '\n').replace('\r', '\n')
    return _HEADING_LINE_RE.sub(_heading_label, text)


def _heading_label(m) -> str:
    title = m.group(1)
    if not title or ':' in title:
        return title
    return f'{title}:'


def canonical_name(name: str) -> str:
    return ' '.join(name.split()).lower()


def _name_pattern(name: str) -> str:
    return r'[ \t]+'.join(re.escape(word) for word in name.split())


class Anchor(NamedTuple):
    name: str | None     # expected header name, None for a foreign section
    start: int           # offset of the header line
    end: int             # offset where the section body begins


# ---------------------------------------------------------------------------
# Header grammar
# ---------------------------------------------------------------------------

class HeaderGrammar:
    """Compiled header patterns for one ordered list of section names."""

    def __init__(self, names, detect_foreign: bool = True, nested=()):
        self.names = list(names)
        self.detect_foreign = detect_foreign
        self._by_key = {canonical_name(n): n for n in self.names}
        # Sub-headers that belong inside a section, never foreign
        self._nested = {canonical_name(n) for n in nested}

        # Longest first so a name never loses to its own prefix
        ordered = sorted(self.names, key=len, reverse=True)
        self.alternation = '|'.join(_name_pattern(n) for n in ordered)
        self.header_re = re.compile(
            _LEAD + rf'(?P<name>{self.alternation})' + _TAIL,
            re.IGNORECASE | re.MULTILINE,
        )

    def resolve(self, matched: str) -> str:
        """Map a matched header spelling back to its registered name."""
        return self._by_key[canonical_name(matched)]

    def find_anchors(self, text: str) -> list[Anchor]:
        anchors = [Anchor(self.resolve(m.group('name')), m.start(), m.end())
                   for m in self.header_re.finditer(text)]
        if anchors and self.detect_foreign:
            anchors.extend(self._foreign_anchors(text, after=anchors[-1].end))
        return anchors

    def trim_foreign(self, body: str) -> str:
        """Cut a trailing section body at the first foreign header in it."""
        if not self.detect_foreign:
            return body
        foreign = self._foreign_anchors(body, after=0)
        return body[:foreign[0].start].strip() if foreign else body

    def _foreign_anchors(self, text: str, after: int) -> list[Anchor]:
        found = []
        for m in _FOREIGN_HEADER_RE.finditer(text, after):
            ordinal = m.group('ordinal')
            title = canonical_name(m.group('title'))
            # Low ordinals are numbered list items ("1. Embrace Tools:")
            if ordinal and int(ordinal) <= len(self.names):
                continue
            if title in self._by_key or title in self._nested:
                continue
            logger.info('Ignoring unexpected section %r', m.group('title'))
            found.append(Anchor(None, m.start(), m.end()))
        return found


# ---------------------------------------------------------------------------
# Extraction strategies
# ---------------------------------------------------------------------------

class ExtractionStrategy(ABC):
    """Turns normalized completion text into {section name: raw body}."""

    name: str = ''

    @abstractmethod
    def extract(self, text: str, grammar: HeaderGrammar) -> dict:
        """Return bodies keyed by section name; empty dict if nothing matched."""


class BoundaryScanStrategy(ExtractionStrategy):
    name = 'boundary_scan'

    def extract(self, text, grammar):
        anchors = sorted(grammar.find_anchors(text), key=lambda a: a.start)
        sections = {}
        for i, anchor in enumerate(anchors):
            if anchor.name is None or anchor.name in sections:
                continue  # foreign section, or a repeat of one already taken
            end = anchors[i + 1].start if i + 1 < len(anchors) else len(text)
            sections[anchor.name] = text[anchor.end:end].strip()
        return sections


class PerSectionRegexStrategy(ExtractionStrategy):
    name = 'per_section_regex'

    def extract(self, text, grammar):
        next_header = (_LEAD + rf'(?:{grammar.alternation})'
                       + rf'[ \t]*{_DECOR}[ \t]*(?:[:\-–—]|$)')
        sections = {}
        starts = {}
        for section_name in grammar.names:
            pattern = re.compile(
                _LEAD + _name_pattern(section_name)
                + rf'[ \t]*{_DECOR}[ \t]*(?:[:\-–—]{_CLOSE_DECOR}|$)'
                + rf'(?P<body>.*?)(?={next_header}|\Z)',
                re.IGNORECASE | re.MULTILINE | re.DOTALL,
            )
            m = pattern.search(text)
            if m:
                sections[section_name] = m.group('body').strip()
                starts[section_name] = m.start()
        if sections:
            last = max(starts, key=starts.get)
            sections[last] = grammar.trim_foreign(sections[last])
        return sections


DEFAULT_STRATEGIES = (BoundaryScanStrategy(), PerSectionRegexStrategy())


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class SectionParser:
    """Extract raw section bodies for an ordered set of report sections."""

    def __init__(self, sections=REPORT_SECTIONS, strategies=DEFAULT_STRATEGIES,
                 detect_foreign: bool = True, nested=()):
        self.sections = tuple(sections)
        self.strategies = tuple(strategies)
        self.grammar = HeaderGrammar([s.header for s in self.sections],
                                     detect_foreign=detect_foreign,
                                     nested=nested)

    def parse(self, raw: str) -> dict:
        """Return {field: raw body}; every field is present, possibly ''."""
        text = normalize_completion(raw)
        found = {}
        for strategy in self.strategies:
            found = strategy.extract(text, self.grammar)
            if found:
                logger.info('Parsed %d/%d sections via %s',
                            len(found), len(self.sections), strategy.name)
                break
        else:
            logger.warning('No recognizable section headers in completion (%d chars)',
                           len(text))

        return {s.field: found.get(s.header, '') for s in self.sections}


_report_parser = SectionParser(nested=[s.header for s in COMPOSITE_SUBSECTIONS])
# The composite block is already bounded, so no foreign-section detection
_composite_parser = SectionParser(COMPOSITE_SUBSECTIONS, detect_foreign=False)


def parse_sections(raw: str) -> dict:
    """Split a completion into the report's top-level section bodies."""
    return _report_parser.parse(raw)


def split_composite(block: str) -> dict:
    """Split the benefits/risks block on its "Benefits:" / "Risks:" sub-headers."""
    if not block:
        return {s.field: '' for s in COMPOSITE_SUBSECTIONS}
    return _composite_parser.parse(block)
