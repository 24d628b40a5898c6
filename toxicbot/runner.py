"""
Command-line entry point, meant to run as a GitHub Actions step.

Reads the event file the runner provides (GITHUB_EVENT_PATH), processes it
and exits non-zero when the event could not be handled.
"""

import asyncio
import dataclasses
import json
import logging
from typing import Any, Mapping, Optional

import httpx
import typer

from config import Settings, load_settings
from toxicbot.engine.orchestrator import EventProcessor
from toxicbot.engine.policy import ToxicityPolicy
from toxicbot.errors import ConfigError, EventPayloadError, ToxicBotError
from toxicbot.logging import configure_logging, set_failed
from toxicbot.models import EventOutcome
from toxicbot.services.classifier import ToxicityClassifier
from toxicbot.services.event_log import EventLogger
from toxicbot.services.github import GitHubApi
from toxicbot.services.metrics import Telemetry
from toxicbot.services.survey import SurveyApi

app = typer.Typer(help="Screen GitHub activity for toxic language")

logger = logging.getLogger("toxicbot")


def build_processor(settings: Settings, client: httpx.AsyncClient,
                    classifier: Optional[Any] = None) -> EventProcessor:
    policy = ToxicityPolicy(
        classifier=classifier or ToxicityClassifier(settings.model_name),
        survey=SurveyApi(client, settings.log_key, settings.api_url),
        poster=GitHubApi(client, settings.github_token, settings.github_api_url),
        threshold=settings.threshold,
        silent_mode=settings.silent_mode,
        intervention_message=settings.intervention_message,
    )
    event_logger = EventLogger(client, settings.log_key, settings.repository, settings.api_url)
    return EventProcessor(policy, event_logger, Telemetry())


def read_event(path: str) -> Mapping[str, Any]:
    if not path:
        raise EventPayloadError("No event file given (set GITHUB_EVENT_PATH or pass --event-path)")
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, ValueError) as e:
        raise EventPayloadError(f"Could not read event file {path}: {e}") from e


async def process(settings: Settings, payload: Mapping[str, Any]) -> EventOutcome:
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        processor = build_processor(settings, client)
        return await processor.process_event(payload, settings.event_name or None)


@app.command()
def run(
    event_path: Optional[str] = typer.Option(None, "--event-path", help="Event JSON file (defaults to GITHUB_EVENT_PATH)"),
    event_name: Optional[str] = typer.Option(None, "--event-name", help="Event name (defaults to GITHUB_EVENT_NAME)"),
    silent: bool = typer.Option(False, "--silent", help="Classify and log but never comment"),
):
    """
    Process a single GitHub event.
    """
    try:
        settings = load_settings()
    except ConfigError as e:
        configure_logging(logging.INFO)
        set_failed(str(e))
        raise typer.Exit(code=1)

    configure_logging(getattr(logging, settings.log_level, logging.INFO))

    overrides = {}
    if event_path:
        overrides["event_path"] = event_path
    if event_name:
        overrides["event_name"] = event_name
    if silent:
        overrides["silent_mode"] = True
    settings = dataclasses.replace(settings, **overrides)

    try:
        payload = read_event(settings.event_path)
        outcome = asyncio.run(process(settings, payload))
    except ToxicBotError as e:
        set_failed(str(e))
        raise typer.Exit(code=1)

    if not outcome.success:
        set_failed(outcome.error or "Event could not be processed")
        raise typer.Exit(code=1)

    decision = outcome.decision
    if decision is not None:
        logger.info(
            f"is_toxic={decision.is_toxic} should_intervene={decision.should_intervene} posted={decision.posted}"
        )


def main():
    app()


if __name__ == "__main__":
    main()
