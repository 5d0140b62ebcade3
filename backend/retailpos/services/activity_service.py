# Overview: Append-only activity trail for sales, restocks and product edits.

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import ActivityLog
from ..time_utils import utcnow

"""
Activity Log Invariants

- Entries are appended, never updated or deleted (see models.activity).
- Writes are best-effort: record() commits on its own after the primary
  operation has committed, and a failure here is logged and swallowed.
- Display order is newest first.
"""


@dataclass(frozen=True)
class Actor:
    actor_id: str
    name: str
    role: str


SYSTEM_ACTOR = Actor(actor_id="SYSTEM", name="System", role="SYSTEM")


def cashier_actor(cashier_id: str | None, cashier_name: str | None) -> Actor:
    if not cashier_id:
        return Actor(actor_id=SYSTEM_ACTOR.actor_id, name=cashier_name or SYSTEM_ACTOR.name, role="CASHIER")
    return Actor(actor_id=cashier_id, name=cashier_name or cashier_id, role="CASHIER")


def record(
    actor: Actor,
    action: str,
    details: str = "",
    timestamp: datetime | None = None,
) -> ActivityLog | None:
    """Append an activity entry. Returns None when the write failed."""
    try:
        entry = ActivityLog(
            actor_id=actor.actor_id,
            actor_name=actor.name,
            actor_role=actor.role,
            action=action,
            details=details,
            timestamp=timestamp or utcnow(),
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception:
        db.session.rollback()
        current_app.logger.warning("Failed to record activity %r", action, exc_info=True)
        return None


def list_activity(limit: int = 200) -> list[ActivityLog]:
    limit = max(1, min(limit, 1000))
    return (
        db.session.query(ActivityLog)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )
