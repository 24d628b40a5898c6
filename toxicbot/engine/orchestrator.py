from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

from toxicbot.engine.events import normalize_event, parse_command
from toxicbot.engine.policy import ToxicityPolicy
from toxicbot.errors import LogSinkError, ToxicBotError
from toxicbot.models import Command, CommandKind, EventOutcome
from toxicbot.services.metrics import Telemetry

logger = logging.getLogger("toxicbot")


def request_name(command: Command) -> str:
    if command.kind == CommandKind.TOXICITY_CHECK:
        return f"{command.kind.value} {command.location.value}"
    return f"{command.kind.value} {command.trigger.value}"


class EventProcessor:
    """
    Handles one GitHub event end to end: command parsing, the toxicity
    policy for checkable text, the event log and request telemetry.
    """

    def __init__(self, policy: ToxicityPolicy, event_logger: Any, telemetry: Optional[Telemetry] = None):
        self.policy = policy
        self.event_logger = event_logger
        self.telemetry = telemetry or Telemetry()

    async def process_event(self, payload: Mapping[str, Any], event_name: Optional[str] = None) -> EventOutcome:
        start = time.monotonic()

        event = normalize_event(payload, event_name)
        command = parse_command(event)

        if command is None:
            logger.error(f"Could not process event into a command: {event.event_name}/{event.action}")
            duration = time.monotonic() - start
            self.telemetry.track_request(f"Unrecognized {event.event_name}", duration, False)
            return EventOutcome(
                command=None,
                success=False,
                duration=duration,
                error=f"Unrecognized event {event.event_name}/{event.action}",
            )

        outcome = EventOutcome(command=command, success=True)

        if command.kind == CommandKind.TOXICITY_CHECK:
            logger.info(
                f"Processing Toxicity Command of location: {command.location.value} "
                f"and trigger {command.trigger.value}"
            )
            try:
                outcome.decision = await self.policy.evaluate(command)
            except ToxicBotError:
                self.telemetry.track_request(request_name(command), time.monotonic() - start, False)
                raise
            self.telemetry.track_decision(outcome.decision.is_toxic, outcome.decision.should_intervene)

        try:
            await self.event_logger.log_command(command)
            outcome.logged = True
        except LogSinkError as e:
            logger.error(f"Failed to log command: {e}")

        outcome.duration = time.monotonic() - start
        self.telemetry.track_request(request_name(command), outcome.duration, True)
        return outcome
