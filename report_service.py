"""Career impact report orchestration.

Validator -> prompt builder -> completion fetcher -> section parser ->
text cleaner -> report, with usage events logged alongside. The public entry
point submit_analysis() never raises: it always returns an ActionState.
"""

import logging
from dataclasses import asdict, dataclass, field

from errors import (CareerReportError, ConfigurationError, UpstreamError,
                    ValidationError)
from llm_service import CompletionFetcher, build_system_prompt
from report_parser import parse_sections, split_composite
from sections import (COMPOSITE_FIELD, COMPOSITE_SUBSECTIONS, REPORT_SECTIONS,
                      fallback_for)
from text_cleaner import clean_text, sanitize_completion, to_plain_text
from usage_service import (EVENT_REPORT_GENERATED, EVENT_REPORT_REQUESTED,
                           log_usage_event)
from validators import coerce_int, validate_request

logger = logging.getLogger(__name__)

_SUBHEADINGS = tuple(s.header for s in COMPOSITE_SUBSECTIONS)


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisRequest:
    profession: str
    experience_years: int
    region: str
    skill_level: int
    details: str | None = None

    @classmethod
    def create(cls, profession, experience, region, skill_level,
               details=None) -> 'AnalysisRequest':
        """Validate raw inputs and build the request. Raises ValidationError."""
        if isinstance(details, str) and not details.strip():
            details = None
        validate_request(profession, experience, region, skill_level, details)
        return cls(
            profession=profession.strip(),
            experience_years=coerce_int(experience),
            region=region.strip(),
            skill_level=coerce_int(skill_level),
            details=details.strip() if details else None,
        )


@dataclass(frozen=True)
class AnalysisReport:
    """Structured report. Every text field is non-empty by construction."""

    profession: str
    outlook: str
    benefits_and_risks: str
    benefits: str
    risks: str
    steps: str
    placard: str

    @property
    def share_text(self) -> str:
        return to_plain_text(self.placard)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['share_text'] = self.share_text
        return data


@dataclass
class ActionState:
    """Success/failure envelope returned by every public operation."""

    is_success: bool
    message: str
    data: dict | None = None
    error: str | None = field(default=None)   # failure kind, for status mapping

    @classmethod
    def success(cls, message: str, data: dict | None = None) -> 'ActionState':
        return cls(True, message, data)

    @classmethod
    def failure(cls, message: str, error: str = 'internal') -> 'ActionState':
        return cls(False, message, None, error)

    def to_dict(self) -> dict:
        out = {'is_success': self.is_success, 'message': self.message}
        if self.is_success:
            out['data'] = self.data
        else:
            out['error'] = self.error
        return out


# ---------------------------------------------------------------------------
# Parsing + assembly
# ---------------------------------------------------------------------------

def assemble_report(profession: str, fields: dict) -> AnalysisReport:
    """Fill every empty field with its fallback literal and build the report."""
    values = {}
    for section in REPORT_SECTIONS + COMPOSITE_SUBSECTIONS:
        content = fields.get(section.field) or ''
        values[section.field] = content if content.strip() else fallback_for(section.field)
    return AnalysisReport(profession=profession, **values)


def build_report(profession: str, raw_completion: str) -> AnalysisReport:
    """Parse and clean a raw completion. Degrades per field, never raises."""
    text = sanitize_completion(raw_completion)
    sections = parse_sections(text)

    fields = {}
    for section in REPORT_SECTIONS:
        subheadings = _SUBHEADINGS if section.field == COMPOSITE_FIELD else ()
        fields[section.field] = clean_text(sections[section.field], subheadings=subheadings)

    for field_name, body in split_composite(sections[COMPOSITE_FIELD]).items():
        fields[field_name] = clean_text(body)

    missing = [s.field for s in REPORT_SECTIONS if not fields[s.field]]
    if missing:
        logger.warning('Report sections missing, using fallbacks: %s', ', '.join(missing))

    return assemble_report(profession, fields)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate_report(request: AnalysisRequest, fetcher: CompletionFetcher,
                    user_id: str | None = None) -> AnalysisReport:
    """Run one report generation. Raises CareerReportError subclasses."""
    if not fetcher.config.is_configured:
        raise ConfigurationError('completion credential is missing')

    log_usage_event(EVENT_REPORT_REQUESTED, user_id)

    prompt = build_system_prompt(
        profession=request.profession,
        experience=request.experience_years,
        region=request.region,
        skill_level=request.skill_level,
        details=request.details,
    )
    logger.info('Requesting report for %r (%d prompt chars)',
                request.profession, len(prompt))
    raw = fetcher.fetch(prompt)

    report = build_report(request.profession, raw)
    log_usage_event(EVENT_REPORT_GENERATED, user_id)
    return report


def submit_analysis(fetcher: CompletionFetcher, profession, experience, region,
                    skill_level, details=None,
                    user_id: str | None = None) -> ActionState:
    """Validate, generate, and wrap the outcome in an ActionState."""
    try:
        request = AnalysisRequest.create(profession, experience, region,
                                         skill_level, details)
    except ValidationError as e:
        logger.info('Rejected analysis request (%s): %s', e.field, e)
        return ActionState.failure(e.user_message, error='validation')

    try:
        report = generate_report(request, fetcher, user_id)
    except ConfigurationError as e:
        logger.error('Report generation unavailable: %s', e)
        return ActionState.failure(e.user_message, error='configuration')
    except UpstreamError as e:
        logger.warning('Report generation failed upstream (%s): %s',
                       type(e).__name__, e)
        return ActionState.failure(e.user_message, error='upstream')
    except Exception:
        logger.error('Unhandled error in submit_analysis', exc_info=True)
        return ActionState.failure(CareerReportError.user_message)

    return ActionState.success('Analysis completed successfully', report.to_dict())
