# Overview: Service-layer operations for the audit trail.

from __future__ import annotations

from typing import Optional

from ..extensions import db
from ..models import AuditLogEntry
from ..models.audit import AUDIT_ACTIONS
from .session_service import ActorContext

"""
Audit trail invariants (authoritative)

- Append-only: no updates or deletes of existing entries.
- No domain/business logic in the audit trail itself.
- Entries are written inside the same DB transaction as the action they
  record, so an aborted sale or adjustment leaves no entry, and a committed
  one always has its entry. A failing audit write fails the whole operation.
"""


def append_audit_entry(
    *,
    actor: ActorContext,
    action: str,
    description: str,
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[dict] = None,
) -> AuditLogEntry:
    if action not in AUDIT_ACTIONS:
        raise ValueError(f"unknown audit action: {action}")

    entry = AuditLogEntry(
        actor_id=actor.actor_id,
        actor_name=actor.actor_name,
        actor_role=actor.actor_role,
        action=action,
        entity=entity,
        entity_id=entity_id,
        description=description[:512],
        metadata_json=metadata,
    )
    db.session.add(entry)
    db.session.flush()  # ensures entry.id is assigned without committing
    return entry
