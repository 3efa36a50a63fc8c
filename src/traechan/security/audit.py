from __future__ import annotations

import logging
from collections.abc import Mapping

from traechan.domain import User
from traechan.logging_config import log_security_audit_event


def _actor_fields(
    *,
    actor: User | None = None,
    actor_user_id: object | None = None,
) -> dict[str, object]:
    resolved_user_id = actor_user_id
    if resolved_user_id is None and actor is not None:
        resolved_user_id = actor.id

    fields: dict[str, object] = {}
    if resolved_user_id is not None:
        fields["actor_user_id"] = resolved_user_id
    return fields


def _emit_security_audit(
    *,
    event: str,
    outcome: str,
    audit_level: int = logging.INFO,
    reason: str | None = None,
    actor: User | None = None,
    actor_user_id: object | None = None,
    fields: Mapping[str, object] | None = None,
) -> None:
    payload: dict[str, object] = {}
    payload.update(_actor_fields(actor=actor, actor_user_id=actor_user_id))
    if fields:
        payload.update(fields)

    if reason is not None:
        payload["reason"] = reason

    log_security_audit_event(
        audit_event=f"auth.{event}",
        outcome=outcome,
        audit_level=audit_level,
        **payload,
    )


def audit_auth_denied(
    *,
    event: str,
    reason: str,
    actor_user_id: object | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        event=event,
        outcome="denied",
        audit_level=logging.WARNING,
        reason=reason,
        actor_user_id=actor_user_id,
        fields=fields,
    )


def audit_auth_success(
    *,
    event: str,
    actor: User | None = None,
    actor_user_id: object | None = None,
    **fields: object,
) -> None:
    _emit_security_audit(
        event=event,
        outcome="success",
        actor=actor,
        actor_user_id=actor_user_id,
        fields=fields,
    )
