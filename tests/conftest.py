import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from toxicbot.errors import GitHubRejectedError, LogSinkUnreachableError
from toxicbot.models import CategoryPrediction


class FakeClassifier:
    """Scores any text containing a toxic word at 0.95 for 'insult' and 'toxicity'."""

    TOXIC_WORDS = ("idiot", "stupid", "trash")

    def __init__(self, scores=None, error=None):
        self.scores = scores
        self.error = error
        self.calls = []

    def classify(self, texts, categories, threshold):
        self.calls.append((list(texts), list(categories), threshold))
        if self.error:
            raise self.error
        results = []
        for text in texts:
            if self.scores is not None:
                scores = self.scores
            elif any(word in text.lower() for word in self.TOXIC_WORDS):
                scores = {"insult": 0.95, "toxicity": 0.95}
            else:
                scores = {}
            results.append([
                CategoryPrediction(category=c, matches=scores.get(c, 0.0) >= threshold, score=scores.get(c, 0.0))
                for c in categories
            ])
        return results


class FakeSurvey:
    def __init__(self, url="https://survey.example/s/abc", error=None):
        self.url = url
        self.error = error
        self.calls = []

    async def get_survey_url(self, slug, issue_number):
        self.calls.append((slug, issue_number))
        if self.error:
            raise self.error
        return self.url


class FakePoster:
    def __init__(self, fail=False):
        self.fail = fail
        self.issue_comments = []
        self.review_replies = []

    async def post_comment_to_issue(self, owner, repo, number, body):
        if self.fail:
            raise GitHubRejectedError("Resource not accessible by integration", status_code=403)
        self.issue_comments.append((owner, repo, number, body))

    async def post_reply_to_review_comment(self, owner, repo, number, comment_id, body):
        if self.fail:
            raise GitHubRejectedError("Resource not accessible by integration", status_code=403)
        self.review_replies.append((owner, repo, number, comment_id, body))


class FakeStream:
    def __init__(self, values):
        self.values = list(values)

    def next(self):
        return self.values.pop(0)


class FakeRng:
    """rng_factory that hands out fixed draws and records the seeds it saw."""

    def __init__(self, *values):
        self.values = values
        self.seeds = []

    def __call__(self, seed):
        self.seeds.append(seed)
        return FakeStream(self.values)


class FakeEventLogger:
    def __init__(self, fail=False):
        self.fail = fail
        self.logged = []

    async def log_command(self, command):
        if self.fail:
            raise LogSinkUnreachableError("Could not reach log API")
        self.logged.append(command)


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def survey():
    return FakeSurvey()


@pytest.fixture
def poster():
    return FakePoster()


@pytest.fixture
def event_logger():
    return FakeEventLogger()
