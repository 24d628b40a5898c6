"""
Persists every processed command to the central research log.
"""
from __future__ import annotations

import logging

import httpx

from toxicbot.errors import LogSinkRejectedError, LogSinkUnreachableError
from toxicbot.models import Command

logger = logging.getLogger(__name__)


class EventLogger:

    def __init__(self, client: httpx.AsyncClient, key: str, slug: str, base_url: str):
        self.client = client
        self.key = key
        self.slug = slug
        self.base_url = base_url.rstrip("/")

    async def log_command(self, command: Command) -> None:
        try:
            response = await self.client.put(
                f"{self.base_url}/log",
                json=command.to_log_dict(),
                params={"key": self.key, "slug": self.slug},
            )
        except httpx.HTTPError as e:
            raise LogSinkUnreachableError(f"Could not reach log API: {e}") from e

        if response.is_error:
            raise LogSinkRejectedError(
                f"Invalid response from log API ({response.status_code})",
                status_code=response.status_code,
            )
        logger.debug("Logged processed command")
