"""
Event classification: GitHub webhook event -> command.

For a new or edited comment, issue, pull request or review the toxicity
check should run. Deletions, dismissals and other issue/PR activity are
only logged.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from toxicbot.errors import EventPayloadError
from toxicbot.models import (
    Command,
    EventDescriptor,
    LoggingCommand,
    LogTypes,
    ToxicityCommand,
    Triggers,
)

ISSUE_COMMENT = "issue_comment"
PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"
PULL_REQUEST_REVIEW = "pull_request_review"
ISSUES = "issues"
PULL_REQUEST = "pull_request"


def _dig(data: Any, path: Sequence[str]) -> Any:
    current = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def normalize_event(payload: Mapping[str, Any], event_name: Optional[str] = None) -> EventDescriptor:
    """
    Flatten a raw event payload into an EventDescriptor.

    A repository_dispatch relay carries the original event in
    `client_payload` together with its `event_name`; anything else is
    treated as the webhook payload itself.
    """
    if not isinstance(payload, Mapping):
        raise EventPayloadError("Event payload must be a JSON object")

    client_payload = payload.get("client_payload")
    if isinstance(client_payload, Mapping):
        event = client_payload
        name = event.get("event_name") or event_name
    else:
        event = payload
        name = event_name or event.get("event_name")

    if not name:
        raise EventPayloadError("Event payload does not name its event")

    slug = _dig(event, ("repository", "full_name"))
    if not slug:
        raise EventPayloadError("Event payload has no repository.full_name")

    # Reviews and review comments are numbered against the owning PR.
    number = _dig(event, ("issue", "number"))
    if number is None:
        number = _dig(event, ("pull_request", "number"))

    changes = event.get("changes")

    return EventDescriptor(
        event_name=name,
        action=event.get("action"),
        slug=slug,
        number=number,
        comment_body=_dig(event, ("comment", "body")),
        comment_id=_dig(event, ("comment", "id")),
        issue_body=_dig(event, ("issue", "body")),
        pull_request_body=_dig(event, ("pull_request", "body")),
        review_body=_dig(event, ("review", "body")),
        changes=changes if isinstance(changes, Mapping) else {},
        payload=event,
    )


def _comment_command(event: EventDescriptor, action: Optional[str], location: LogTypes) -> Optional[Command]:
    # Works for both PR discussion comments and issue discussion comments.
    if action in ("created", "edited"):
        trigger = Triggers.CREATE if action == "created" else Triggers.EDIT
        return ToxicityCommand.create(event, location, trigger)
    if action == "deleted":
        return LoggingCommand(event.payload, location, Triggers.DELETE)
    return None


def _review_command(event: EventDescriptor, action: Optional[str]) -> Optional[Command]:
    if action == "submitted" and event.review_body is not None:
        return ToxicityCommand.create(event, LogTypes.REVIEW, Triggers.CREATE, event.review_body)
    if action == "edited" and len(event.changes) > 0:
        return ToxicityCommand.create(event, LogTypes.REVIEW, Triggers.EDIT, event.review_body or "")
    # An edit without changes is the twin of a submit that was already handled.
    if action == "dismissed":
        return LoggingCommand(event.payload, LogTypes.REVIEW, Triggers.DELETE)
    return None


def _issue_command(event: EventDescriptor, action: Optional[str]) -> Command:
    if action == "opened":
        return ToxicityCommand.create(event, LogTypes.ISSUE, Triggers.CREATE, event.issue_body or "")
    if action == "edited":
        return ToxicityCommand.create(event, LogTypes.ISSUE, Triggers.EDIT, event.issue_body or "")
    return LoggingCommand(event.payload, LogTypes.ISSUE, Triggers.OTHER)


def _pull_request_command(event: EventDescriptor, action: Optional[str]) -> Command:
    body = event.pull_request_body or ""
    if action == "opened":
        return ToxicityCommand.create(event, LogTypes.PULL_REQUEST, Triggers.CREATE, body)
    if action == "edited":
        # Tagged OTHER, unlike issue edits; kept as-is so logged data stays comparable.
        return ToxicityCommand.create(event, LogTypes.PULL_REQUEST, Triggers.OTHER, body)
    return LoggingCommand(event.payload, LogTypes.PULL_REQUEST, Triggers.OTHER)


def classify_event(event_name: str, action: Optional[str], event: EventDescriptor) -> Optional[Command]:
    """
    Map an event to exactly one command, or None when the
    (event_name, action) pair is not one we understand.
    """
    if event_name == ISSUE_COMMENT:
        return _comment_command(event, action, LogTypes.COMMENT)
    if event_name == PULL_REQUEST_REVIEW_COMMENT:
        return _comment_command(event, action, LogTypes.REVIEW_COMMENT)
    if event_name == PULL_REQUEST_REVIEW:
        return _review_command(event, action)
    if event_name == ISSUES:
        return _issue_command(event, action)
    if event_name == PULL_REQUEST:
        return _pull_request_command(event, action)

    return None


def parse_command(event: EventDescriptor) -> Optional[Command]:
    return classify_event(event.event_name, event.action, event)
