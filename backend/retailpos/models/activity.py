from __future__ import annotations

from sqlalchemy import event

from ..errors import ImmutableRecordError
from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ActivityLog(db.Model):
    """User-visible audit trail entry (sales, restocks, product edits)."""
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.String(64), nullable=False)
    actor_name = db.Column(db.String(255), nullable=False)
    actor_role = db.Column(db.String(32), nullable=False)
    action = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text, nullable=False, default="")
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "actor_role": self.actor_role,
            "action": self.action,
            "details": self.details,
            "timestamp": to_utc_z(self.timestamp),
        }


@event.listens_for(ActivityLog, "before_update")
@event.listens_for(ActivityLog, "before_delete")
def _reject_mutation(mapper, connection, target):
    raise ImmutableRecordError("Activity log entries are append-only", details={"id": target.id})
