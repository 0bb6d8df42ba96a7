"""Usage event logging for analytics.

create_usage_log() is the plain insert and raises on failure.
log_usage_event() is the best-effort wrapper used on request paths: it never
raises, so a broken database cannot fail report generation or sharing.
"""

import logging

from sqlalchemy import func

from models import UsageLog, db

logger = logging.getLogger(__name__)

EVENT_REPORT_REQUESTED = 'report_requested'
EVENT_REPORT_GENERATED = 'report_generated'
SHARE_EVENT_PREFIX = 'shared_'


def share_event_type(network: str) -> str:
    return f'{SHARE_EVENT_PREFIX}{network}'


def create_usage_log(event_type: str, user_id: str | None = None) -> UsageLog:
    """Insert one usage event row and commit."""
    entry = UsageLog(event_type=event_type, user_id=user_id)
    db.session.add(entry)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return entry


def log_usage_event(event_type: str, user_id: str | None = None) -> bool:
    """Record a usage event; failures are logged and swallowed."""
    try:
        create_usage_log(event_type, user_id)
    except Exception as e:
        logger.warning('Usage logging failed for %s: %s', event_type, e, exc_info=True)
        return False
    logger.info('Usage event logged: %s', event_type)
    return True


def get_all_usage_logs(limit: int | None = None) -> list[UsageLog]:
    """Return usage events, newest first."""
    query = UsageLog.query.order_by(UsageLog.created_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def count_usage_by_event() -> dict:
    """Return {event_type: count} across all usage events."""
    rows = (
        db.session.query(UsageLog.event_type, func.count(UsageLog.id))
        .group_by(UsageLog.event_type)
        .all()
    )
    return {event_type: count for event_type, count in rows}
