"""Database models: append-only usage events."""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def _utcnow() -> datetime:
    # Stored naive, always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UsageLog(db.Model):
    """One analytics event: report requested/generated, shared to a network, etc.

    Rows are only ever inserted; there is no update or delete path.
    """
    __tablename__ = 'usage_logs'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_type = db.Column(db.String(64), nullable=False, index=True)   # 'report_generated', 'shared_twitter'
    user_id = db.Column(db.String(128), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'event_type': self.event_type,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<UsageLog {self.event_type} user={self.user_id}>'
