"""Turns a raw GitHub webhook payload into a ``GitHubEvent``."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from hookcord.errors import InvalidInboundEvent
from hookcord.models.event import KNOWN_EVENT_TYPES, GitHubEvent

logger = logging.getLogger(__name__)

# Event types whose payload ``action`` names the lifecycle step.
ACTION_EVENT_TYPES = frozenset(
    {"issues", "issue_comment", "pull_request", "release", "watch", "repository", "member"}
)
REF_EVENT_TYPES = frozenset({"create", "delete"})

_BRANCH_PREFIX = "refs/heads/"


def _push_branch(ref: str | None) -> str | None:
    """Branch name of a push ref; None for tag pushes."""
    if ref and ref.startswith(_BRANCH_PREFIX):
        return ref[len(_BRANCH_PREFIX):]
    return None


def _text(event_type: str, data: Mapping[str, Any], key: str) -> str | None:
    """Optional string field of *data*; any other non-null type is malformed."""
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise InvalidInboundEvent(f"{event_type}: '{key}' is not a string")
    return value


def _object(event_type: str, data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """Optional object field of *data*, empty when absent."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidInboundEvent(f"{event_type}: '{key}' is not an object")
    return value


def require_event(
    event_type: str | None,
    payload: Any,
    delivery_id: str | None = None,
) -> GitHubEvent:
    """Normalize a delivery or raise ``InvalidInboundEvent``."""
    if not event_type:
        raise InvalidInboundEvent("Missing event type")
    if not isinstance(payload, Mapping):
        raise InvalidInboundEvent(f"{event_type}: payload is not a JSON object")
    repository = payload.get("repository")
    full_name = repository.get("full_name") if isinstance(repository, Mapping) else None
    if not full_name or not isinstance(full_name, str):
        raise InvalidInboundEvent(f"{event_type}: payload has no repository")

    actor_id = _text(event_type, _object(event_type, payload, "sender"), "login")

    subtype: str | None = None
    branch_ref: str | None = None

    if event_type == "push":
        branch_ref = _push_branch(_text(event_type, payload, "ref"))
    elif event_type in REF_EVENT_TYPES:
        subtype = _text(event_type, payload, "ref_type")
        if subtype == "branch":
            branch_ref = _text(event_type, payload, "ref")
    elif event_type in ACTION_EVENT_TYPES:
        subtype = _text(event_type, payload, "action")
        if event_type == "pull_request":
            pull_request = _object(event_type, payload, "pull_request")
            branch_ref = _text(event_type, _object(event_type, pull_request, "base"), "ref")

    if event_type not in KNOWN_EVENT_TYPES:
        logger.debug(f"Unrecognized event type '{event_type}' from {full_name}")

    return GitHubEvent(
        type=event_type,
        subtype=subtype or None,
        repo_id=full_name.lower(),
        actor_id=actor_id,
        branch_ref=branch_ref or None,
        payload=payload,
        delivery_id=delivery_id,
    )


def normalize(
    event_type: str | None,
    payload: Any,
    delivery_id: str | None = None,
) -> GitHubEvent | None:
    """Normalize a delivery; None when it is malformed."""
    try:
        return require_event(event_type, payload, delivery_id)
    except InvalidInboundEvent as e:
        logger.warning(f"Dropping webhook delivery {delivery_id or '-'}: {e}")
        return None
