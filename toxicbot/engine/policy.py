"""
Toxicity intervention policy.

Classifies a ToxicityCommand's text and, for toxic text, decides whether the
bot comments. The decision is a coin flip seeded from the repository and
thread, so re-running the same event never flips the coin a second time.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Callable, List, Optional, Sequence

from toxicbot.errors import GitHubApiError, MissingCommentIdError
from toxicbot.models import CategoryPrediction, LogTypes, ToxicityCommand, ToxicityDecision

logger = logging.getLogger(__name__)

TOXICITY_CATEGORIES = ["identity_attack", "insult", "severe_toxicity", "threat", "toxicity"]
DEFAULT_INTERVENTION_MESSAGE = "Do not be toxic!"
SURVEY_SEPARATOR = "\n\n-----------------------------\n\n"
SURVEY_LINE = (
    "This bot is a part of a research study, please help us out by "
    "responding to the survey here: {url}"
)
INTERVENTION_PROBABILITY_CUTOFF = 0.5

# Locations answered with a new comment on the issue/PR thread
THREAD_LOCATIONS = (LogTypes.COMMENT, LogTypes.REVIEW, LogTypes.ISSUE, LogTypes.PULL_REQUEST)


def java_string_hash(s: str) -> int:
    """
    Java String.hashCode(): s[0]*31^(n-1) + ... + s[n-1] over UTF-16 code
    units, wrapped to a signed 32-bit int. The empty string hashes to 0.
    """
    data = s.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (31 * h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


class SeededStream:
    """Reproducible stream of floats in [0, 1) for a given seed."""

    def __init__(self, seed: str):
        self._rand = random.Random(seed)

    def next(self) -> float:
        return self._rand.random()


def seeded_random(seed: str) -> SeededStream:
    return SeededStream(seed)


def thread_seed(slug: str, issue_number: Optional[int]) -> str:
    return str(java_string_hash(f"{slug}-{issue_number}"))


def build_intervention_message(message: str, survey_url: str) -> str:
    return (message or DEFAULT_INTERVENTION_MESSAGE) + SURVEY_SEPARATOR + SURVEY_LINE.format(url=survey_url)


class ToxicityPolicy:
    """
    Collaborators are injected:

    classifier    -- classify(texts, categories, threshold) -> [[CategoryPrediction]]
    survey        -- async get_survey_url(slug, issue_number) -> str
    poster        -- async post_comment_to_issue(owner, repo, number, body) and
                     async post_reply_to_review_comment(owner, repo, number, comment_id, body)
    rng_factory   -- seed -> stream with next() in [0, 1)
    """

    def __init__(self, classifier: Any, survey: Any, poster: Any, threshold: float,
                 silent_mode: bool = False, intervention_message: str = "",
                 rng_factory: Callable[[str], Any] = seeded_random,
                 categories: Sequence[str] = TOXICITY_CATEGORIES):
        self.classifier = classifier
        self.survey = survey
        self.poster = poster
        self.threshold = threshold
        self.silent_mode = silent_mode
        self.intervention_message = intervention_message
        self.rng_factory = rng_factory
        self.categories = list(categories)
        logger.info(f"Set up toxicity policy with a threshold of {threshold}")

    async def classify(self, text: str) -> List[CategoryPrediction]:
        # The model call blocks, keep it off the event loop.
        results = await asyncio.to_thread(
            self.classifier.classify, [text], self.categories, self.threshold
        )
        return list(results[0])

    async def evaluate(self, command: ToxicityCommand) -> ToxicityDecision:
        predictions = await self.classify(command.text)

        command.predictions = predictions
        command.is_toxic = any(p.matches for p in predictions)
        decision = ToxicityDecision(is_toxic=command.is_toxic)

        if not command.is_toxic:
            return decision

        # Seeded from the thread so the outcome is stable across re-runs.
        stream = self.rng_factory(thread_seed(command.slug, command.issue_number))

        survey_url = await self.survey.get_survey_url(command.slug, command.issue_number)
        command.survey_url = survey_url
        decision.survey_url = survey_url

        if self.silent_mode or stream.next() <= INTERVENTION_PROBABILITY_CUTOFF:
            return decision

        command.should_intervene = True
        decision.should_intervene = True
        decision.message = build_intervention_message(self.intervention_message, survey_url)

        await self._post(command, decision)
        return decision

    async def _post(self, command: ToxicityCommand, decision: ToxicityDecision) -> None:
        if command.location == LogTypes.REVIEW_COMMENT and command.comment_id is None:
            raise MissingCommentIdError(
                f"Cannot reply to review comment on {command.slug}#{command.issue_number}: no comment id"
            )

        logger.info("Using GH API to post a comment")
        try:
            if command.location in THREAD_LOCATIONS:
                await self.poster.post_comment_to_issue(
                    command.project_owner, command.project_name, command.issue_number, decision.message
                )
            elif command.location == LogTypes.REVIEW_COMMENT:
                await self.poster.post_reply_to_review_comment(
                    command.project_owner, command.project_name, command.issue_number,
                    command.comment_id, decision.message,
                )
        except GitHubApiError as e:
            logger.error(f"Failed to post intervention on {command.slug}#{command.issue_number}: {e}")
            decision.post_error = str(e)
            return
        decision.posted = True
