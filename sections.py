"""Report section registry shared by the prompt builder and the parser.

The prompt enumerates ``REPORT_SECTIONS`` in order and the parser looks for
exactly those headers, so the two can only change together.
"""

from typing import NamedTuple


class ReportSection(NamedTuple):
    header: str          # label the model must emit, without the colon
    field: str           # key in the assembled report
    fallback: str        # literal used when the section is missing or empty
    hint: str = ''       # extra instruction rendered under the header in the prompt


REPORT_SECTIONS = (
    ReportSection('General Outlook', 'outlook', 'No general outlook found.'),
    ReportSection(
        'Potential Benefits and Risks', 'benefits_and_risks',
        'No benefits and risks analysis found.',
        hint='(Use the sub-headings "Benefits:" and "Risks:" inside this section.)',
    ),
    ReportSection('Steps to Adapt', 'steps', 'No steps found.'),
    ReportSection(
        'Placard', 'placard', 'No placard summary found.',
        hint='(This is a single-sentence summary that someone could share on social media.)',
    ),
)

# Sub-headers nested inside the composite benefits/risks block
COMPOSITE_FIELD = 'benefits_and_risks'
COMPOSITE_SUBSECTIONS = (
    ReportSection('Benefits', 'benefits', 'No benefits found.'),
    ReportSection('Risks', 'risks', 'No risks found.'),
)


def section_headers(sections=REPORT_SECTIONS) -> list[str]:
    return [s.header for s in sections]


def fallback_for(field: str) -> str:
    """Return the fallback literal for a report or sub-section field."""
    for section in REPORT_SECTIONS + COMPOSITE_SUBSECTIONS:
        if section.field == field:
            return section.fallback
    raise KeyError(field)
