from __future__ import annotations

import logging

import httpx

from toxicbot.errors import SurveyRejectedError, SurveyUnreachableError

logger = logging.getLogger(__name__)


class SurveyApi:
    """Creates (or fetches) the toxicity survey for a thread."""

    def __init__(self, client: httpx.AsyncClient, key: str, base_url: str):
        self.client = client
        self.key = key
        self.base_url = base_url.rstrip("/")

    async def get_survey_url(self, slug: str, issue_number: int) -> str:
        try:
            response = await self.client.put(
                f"{self.base_url}/surveys/toxicity",
                json={},
                params={"key": self.key, "slug": slug, "issue_number": issue_number},
            )
        except httpx.HTTPError as e:
            raise SurveyUnreachableError(f"Could not reach survey endpoint: {e}") from e

        if response.is_error:
            raise SurveyRejectedError(f"Could not create survey (status {response.status_code})")

        try:
            url = response.json().get("url")
        except (ValueError, AttributeError) as e:
            raise SurveyRejectedError(f"Invalid survey response: {e}") from e
        if not url:
            raise SurveyRejectedError("Survey response did not contain a url")

        logger.debug(f"Survey url for {slug}#{issue_number}: {url}")
        return url
