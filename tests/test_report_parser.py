import pytest

from report_parser import (BoundaryScanStrategy, HeaderGrammar,
                           PerSectionRegexStrategy, normalize_completion,
                           parse_sections, split_composite)
from sections import REPORT_SECTIONS, section_headers

BODIES = {
    'General Outlook': 'Outlook body.',
    'Potential Benefits and Risks': 'Benefits:\n- faster charting\nRisks:\n- fewer entry roles',
    'Steps to Adapt': '1. Learn the tools.\n2. Keep practising.',
    'Placard': 'Placard body.',
}

EXPECTED = {
    'outlook': 'Outlook body.',
    'benefits_and_risks': BODIES['Potential Benefits and Risks'],
    'steps': BODIES['Steps to Adapt'],
    'placard': 'Placard body.',
}


def build_completion(fmt, transform=str, order=None):
    names = order or [s.header for s in REPORT_SECTIONS]
    numbers = {s.header: i for i, s in enumerate(REPORT_SECTIONS, start=1)}
    blocks = []
    for name in names:
        header = fmt.format(i=numbers[name], name=transform(name))
        blocks.append(f'{header}\n{BODIES[name]}')
    return '\n\n'.join(blocks)


@pytest.mark.parametrize('fmt', [
    '{i}) {name}:',
    '{i}. {name}:',
    '{name}:',
    '**{i}. {name}:**',
    '**{name}**:',
    '### {i}. {name}:',
    '  {i})  {name} :',
])
def test_header_styles(fmt):
    assert parse_sections(build_completion(fmt)) == EXPECTED


@pytest.mark.parametrize('transform', [str.upper, str.lower, str.title])
def test_header_case_insensitive(transform):
    assert parse_sections(build_completion('{i}) {name}:', transform)) == EXPECTED


def test_extra_whitespace_inside_header_name():
    text = build_completion('{i}) {name}:').replace('General Outlook', 'General   Outlook')
    assert parse_sections(text)['outlook'] == 'Outlook body.'


def test_sections_out_of_order():
    order = ['Placard', 'Steps to Adapt', 'General Outlook', 'Potential Benefits and Risks']
    assert parse_sections(build_completion('{i}) {name}:', order=order)) == EXPECTED


def test_missing_sections_are_empty():
    order = ['General Outlook', 'Steps to Adapt']
    result = parse_sections(build_completion('{i}) {name}:', order=order))
    assert result['outlook'] == 'Outlook body.'
    assert result['steps'] == BODIES['Steps to Adapt']
    assert result['benefits_and_risks'] == ''
    assert result['placard'] == ''


def test_last_section_runs_to_end_of_text():
    text = build_completion('{name}:') + '\nA second placard line.'
    assert parse_sections(text)['placard'] == 'Placard body.\nA second placard line.'


def test_preamble_before_first_header_is_ignored():
    text = 'Sure! Here is my analysis.\n\n' + build_completion('{i}) {name}:')
    assert parse_sections(text) == EXPECTED


def test_content_on_header_line():
    text = ('General Outlook: Bright.\n'
            'Potential Benefits and Risks: Mixed.\n'
            'Steps to Adapt: Learn.\n'
            'Placard: Nurses will thrive.')
    assert parse_sections(text) == {
        'outlook': 'Bright.',
        'benefits_and_risks': 'Mixed.',
        'steps': 'Learn.',
        'placard': 'Nurses will thrive.',
    }


def test_header_words_inside_body_do_not_split():
    text = ('General Outlook:\n'
            'The general outlook is good. Steps to adapt follow below.\n'
            'Placard makers and sign painters are unaffected.\n'
            'Placard:\nKeep going.')
    result = parse_sections(text)
    assert result['outlook'].startswith('The general outlook is good.')
    assert 'sign painters' in result['outlook']
    assert result['placard'] == 'Keep going.'


def test_unexpected_extra_section_is_dropped():
    text = build_completion('{i}) {name}:') + '\n\n5) Additional Notes:\nTalk to a career coach.'
    result = parse_sections(text)
    assert result == EXPECTED
    assert not any('career coach' in body for body in result.values())


@pytest.mark.parametrize('extra', [
    'Additional Notes:',
    '### Conclusion',
    '5) Final thoughts:',
    '**Next Steps**:',
])
def test_trailing_extra_section_does_not_join_placard(extra):
    text = build_completion('{i}) {name}:').replace(
        'Placard body.', 'Short line.') + f'\n\n{extra}\nTalk to a career coach.'
    result = parse_sections(text)
    assert result['placard'] == 'Short line.'
    assert not any('career coach' in body for body in result.values())


def test_trailing_extra_section_dropped_by_fallback_strategy():
    text = build_completion('{name}') + '\n\nAdditional Notes:\nTalk to a career coach.'
    assert parse_sections(text)['placard'] == 'Placard body.'


def test_benefits_risks_last_keeps_sub_headers():
    order = ['General Outlook', 'Steps to Adapt', 'Placard', 'Potential Benefits and Risks']
    result = parse_sections(build_completion('{name}:', order=order))
    assert result['benefits_and_risks'] == BODIES['Potential Benefits and Risks']


def test_hash_in_body_text_is_kept():
    text = 'General Outlook:\n#1 priority is patient safety.\nPlacard:\nEnd.'
    assert parse_sections(text)['outlook'] == '#1 priority is patient safety.'
    assert normalize_completion('#1 priority') == '#1 priority'
    assert normalize_completion('### Conclusion') == 'Conclusion:'
    assert normalize_completion('## Tip: rest well') == 'Tip: rest well'


def test_numbered_step_titles_stay_in_steps():
    text = ('General Outlook:\nGood.\n\n'
            'Steps to Adapt:\n'
            '1. Embrace Technology:\nUse AI charting.\n'
            '2. Keep Learning:\nTake courses.')
    result = parse_sections(text)
    assert 'Embrace Technology' in result['steps']
    assert result['steps'].endswith('Take courses.')
    assert result['placard'] == ''


def test_first_duplicate_header_wins():
    text = 'General Outlook:\nFirst.\nGeneral Outlook:\nSecond.\nPlacard:\nEnd.'
    result = parse_sections(text)
    assert result['outlook'] == 'First.'
    assert result['placard'] == 'End.'


def test_crlf_line_endings():
    text = build_completion('{i}) {name}:').replace('\n', '\r\n')
    assert parse_sections(text) == EXPECTED


def test_no_headers_yields_all_empty():
    result = parse_sections('AI will change many things. Be ready.')
    assert result == {s.field: '' for s in REPORT_SECTIONS}
    assert parse_sections('') == {s.field: '' for s in REPORT_SECTIONS}
    assert parse_sections(None) == {s.field: '' for s in REPORT_SECTIONS}


def test_fallback_strategy_handles_headers_without_colons():
    text = build_completion('{name}')
    grammar = HeaderGrammar(section_headers())
    normalized = normalize_completion(text)

    assert BoundaryScanStrategy().extract(normalized, grammar) == {}
    assert PerSectionRegexStrategy().extract(normalized, grammar)['Placard'] == 'Placard body.'
    assert parse_sections(text) == EXPECTED


def test_fallback_strategy_accepts_dash_separator():
    text = ('General Outlook - Bright.\n'
            'Potential Benefits and Risks - Mixed.\n'
            'Steps to Adapt - Learn.\n'
            'Placard - Go.')
    result = parse_sections(text)
    assert result['outlook'] == 'Bright.'
    assert result['placard'] == 'Go.'


def test_markdown_heading_without_colon():
    text = build_completion('### {i}. {name}')
    assert parse_sections(text) == EXPECTED


def test_bold_body_after_header_is_kept():
    text = 'General Outlook: **Good news** for nurses.\nPlacard:\nEnd.'
    assert parse_sections(text)['outlook'] == '**Good news** for nurses.'


# ---------------------------------------------------------------------------
# Benefits / Risks split
# ---------------------------------------------------------------------------

def test_split_composite():
    result = split_composite(BODIES['Potential Benefits and Risks'])
    assert result == {'benefits': '- faster charting', 'risks': '- fewer entry roles'}


def test_split_composite_decorated_subheaders():
    result = split_composite('**Benefits:**\nMore time.\n\n**Risks:**\nFewer roles.')
    assert result == {'benefits': 'More time.', 'risks': 'Fewer roles.'}


def test_split_composite_without_subheaders():
    assert split_composite('Benefits include speed; risks include cuts.') == {
        'benefits': '', 'risks': ''}
    assert split_composite('') == {'benefits': '', 'risks': ''}
