from __future__ import annotations

import logging

import httpx

from toxicbot.errors import GitHubRejectedError, GitHubTransportError

logger = logging.getLogger(__name__)


class GitHubApi:
    """
    Thin wrapper around the GitHub REST API that can be used to make comments.
    """

    def __init__(self, client: httpx.AsyncClient, token: str,
                 base_url: str = "https://api.github.com"):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def post_comment_to_issue(self, owner: str, repo: str, number: int, body: str) -> None:
        url = f"{self.base_url}/repos/{owner}/{repo}/issues/{number}/comments"
        await self._post(url, body)

    async def post_reply_to_review_comment(self, owner: str, repo: str, number: int,
                                           comment_id: int, body: str) -> None:
        url = f"{self.base_url}/repos/{owner}/{repo}/pulls/{number}/comments/{comment_id}/replies"
        await self._post(url, body)

    async def _post(self, url: str, body: str) -> None:
        try:
            response = await self.client.post(url, headers=self.headers, json={"body": body})
        except httpx.HTTPError as e:
            raise GitHubTransportError(f"Could not reach GitHub API: {e}") from e

        if response.is_error:
            raise GitHubRejectedError(
                f"GitHub API rejected comment ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        logger.debug(f"Posted comment via {url}")
