from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z, utcnow


AUDIT_ACTIONS = (
    "create",
    "update",
    "delete",
    "sale",
    "refund",
    "stock_adjustment",
    "settings_change",
)


class AuditLogEntry(db.Model):
    """
    Append-only audit trail (who did what).

    - No domain logic here.
    - Entries are written inside the same DB transaction as the action they record.
    - Never read by the sale or inventory engine.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        db.Index("ix_audit_logs_actor_created", "actor_id", "created_at"),
        db.Index("ix_audit_logs_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    actor_id = db.Column(db.String(64), nullable=False)
    actor_name = db.Column(db.String(255), nullable=False)
    actor_role = db.Column(db.String(32), nullable=False)

    action = db.Column(db.String(32), nullable=False)
    entity = db.Column(db.String(64), nullable=True)
    entity_id = db.Column(db.Integer, nullable=True)

    description = db.Column(db.String(512), nullable=False)
    metadata_json = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "actor_role": self.actor_role,
            "action": self.action,
            "entity": self.entity,
            "entity_id": self.entity_id,
            "description": self.description,
            "metadata": self.metadata_json,
            "created_at": to_utc_z(self.created_at),
        }
