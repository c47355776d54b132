# Overview: Actor identity carried into every stock and sale operation.

"""
Actor context

WHY: The engine never authenticates anyone. Authentication happens upstream
(session cookie / token gateway), which forwards the resolved identity. The
engine only records who did what on sale, inventory log and audit rows.

The HTTP layer builds an ActorContext from trusted headers:
- X-Actor-Id
- X-Actor-Name
- X-Actor-Role  (owner, manager, cashier)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


ACTOR_ID_HEADER = "X-Actor-Id"
ACTOR_NAME_HEADER = "X-Actor-Name"
ACTOR_ROLE_HEADER = "X-Actor-Role"

ROLES = ("owner", "manager", "cashier")


@dataclass(frozen=True)
class ActorContext:
    actor_id: str
    actor_name: str
    actor_role: str

    def to_dict(self) -> dict:
        return {
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "actor_role": self.actor_role,
        }


# Used by CLI commands, which run outside any request
SYSTEM_ACTOR = ActorContext(actor_id="system", actor_name="System", actor_role="owner")


def actor_from_headers(headers: Mapping[str, str]) -> ActorContext | None:
    """Return the forwarded actor, or None if the identity headers are missing or invalid."""
    actor_id = (headers.get(ACTOR_ID_HEADER) or "").strip()
    actor_name = (headers.get(ACTOR_NAME_HEADER) or "").strip()
    actor_role = (headers.get(ACTOR_ROLE_HEADER) or "").strip().lower()

    if not actor_id or not actor_name:
        return None
    if actor_role not in ROLES:
        return None

    return ActorContext(actor_id=actor_id[:64], actor_name=actor_name[:255], actor_role=actor_role)
