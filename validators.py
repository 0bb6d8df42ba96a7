"""Input validation for career report requests.

Checks run in a fixed order and the first failure wins:
profession -> experience -> region -> skill level -> details.
"""

from errors import ValidationError

MIN_EXPERIENCE = 0
MAX_EXPERIENCE = 50
MIN_SKILL_LEVEL = 1
MAX_SKILL_LEVEL = 10
MAX_DETAILS_CHARS = 500

MSG_PROFESSION = 'Profession is required.'
MSG_EXPERIENCE = f'Experience must be between {MIN_EXPERIENCE} and {MAX_EXPERIENCE} years.'
MSG_REGION = 'Region is required.'
MSG_SKILL_LEVEL = f'Skill level must be between {MIN_SKILL_LEVEL} and {MAX_SKILL_LEVEL}.'
MSG_DETAILS = f'Details must be at most {MAX_DETAILS_CHARS} characters.'


def _as_int(value) -> int | None:
    """Coerce ints and integer-valued strings; anything else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _in_range(value, low: int, high: int) -> bool:
    number = _as_int(value)
    return number is not None and low <= number <= high


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ''


def first_failure(profession, experience, region, skill_level,
                  details=None) -> tuple[str, str] | None:
    """Return (field, message) for the first failing check, or None."""
    if not _text(profession):
        return 'profession', MSG_PROFESSION
    if not _in_range(experience, MIN_EXPERIENCE, MAX_EXPERIENCE):
        return 'experience', MSG_EXPERIENCE
    if not _text(region):
        return 'region', MSG_REGION
    if not _in_range(skill_level, MIN_SKILL_LEVEL, MAX_SKILL_LEVEL):
        return 'skill_level', MSG_SKILL_LEVEL
    if details is not None and (not isinstance(details, str)
                                or len(details) > MAX_DETAILS_CHARS):
        return 'details', MSG_DETAILS
    return None


def validate_request(profession, experience, region, skill_level,
                     details=None) -> None:
    """Raise ValidationError naming the first offending field."""
    failure = first_failure(profession, experience, region, skill_level, details)
    if failure:
        raise ValidationError(*failure)


def coerce_int(value) -> int:
    """Integer form of an already-validated numeric field."""
    number = _as_int(value)
    if number is None:
        raise ValueError(f'not an integer: {value!r}')
    return number
