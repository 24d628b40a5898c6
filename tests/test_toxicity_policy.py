import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import FakeClassifier, FakePoster, FakeRng, FakeSurvey
from toxicbot.engine.policy import (
    DEFAULT_INTERVENTION_MESSAGE,
    TOXICITY_CATEGORIES,
    ToxicityPolicy,
    build_intervention_message,
    java_string_hash,
    seeded_random,
    thread_seed,
)
from toxicbot.errors import ClassificationError, MissingCommentIdError, SurveyUnreachableError
from toxicbot.models import LogTypes, ToxicityCommand, Triggers


def make_command(text="you are an idiot", location=LogTypes.COMMENT, slug="octocat/Hello-World",
                 issue_number=42, comment_id=555):
    return ToxicityCommand(
        context={},
        location=location,
        trigger=Triggers.CREATE,
        slug=slug,
        issue_number=issue_number,
        text=text,
        comment_id=comment_id,
    )


def make_policy(classifier=None, survey=None, poster=None, rng=None, silent=False, message="", threshold=0.8):
    return ToxicityPolicy(
        classifier=classifier or FakeClassifier(),
        survey=survey or FakeSurvey(),
        poster=poster or FakePoster(),
        threshold=threshold,
        silent_mode=silent,
        intervention_message=message,
        rng_factory=rng or FakeRng(0.73),
    )


# ---------------------------------------------------------------------------
# Hashing and seeding
# ---------------------------------------------------------------------------

def test_hash_of_empty_string_is_zero():
    assert java_string_hash("") == 0


@pytest.mark.parametrize("text,expected", [
    ("abc", 96354),
    ("hello", 99162322),
    ("Aa", 2112),
    ("BB", 2112),
    ("octocat/Hello-World-42", 1357018716),
    ("octocat/Hello-World-1347", -1575158653),
])
def test_hash_matches_java_string_hashcode(text, expected):
    assert java_string_hash(text) == expected


def test_hash_stays_in_signed_32_bit_range():
    h = java_string_hash("a much longer string that certainly overflows 32 bits many times over")
    assert -2 ** 31 <= h < 2 ** 31


def test_thread_seed_uses_slug_and_number():
    assert thread_seed("octocat/Hello-World", 42) == "1357018716"


def test_seeded_random_is_reproducible():
    first = [seeded_random("1357018716").next() for _ in range(3)]
    second = [seeded_random("1357018716").next() for _ in range(3)]
    assert first == second
    assert all(0 <= value < 1 for value in first)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_classifier_called_with_fixed_categories_and_threshold():
    classifier = FakeClassifier()
    policy = make_policy(classifier=classifier, threshold=0.65)

    await policy.evaluate(make_command(text="hello there"))

    assert classifier.calls == [(["hello there"], TOXICITY_CATEGORIES, 0.65)]


@pytest.mark.asyncio
async def test_non_toxic_text_skips_survey_and_post():
    survey = FakeSurvey()
    poster = FakePoster()
    command = make_command(text="Thanks, this looks great!")

    decision = await make_policy(survey=survey, poster=poster).evaluate(command)

    assert decision.is_toxic is False
    assert command.is_toxic is False
    assert command.should_intervene is False
    assert command.survey_url is None
    assert len(command.predictions) == len(TOXICITY_CATEGORIES)
    assert survey.calls == []
    assert poster.issue_comments == []


@pytest.mark.asyncio
async def test_score_equal_to_threshold_is_toxic():
    classifier = FakeClassifier(scores={"threat": 0.8})
    command = make_command(text="borderline")

    decision = await make_policy(classifier=classifier, threshold=0.8).evaluate(command)

    assert decision.is_toxic is True
    threat = [p for p in command.predictions if p.category == "threat"][0]
    assert threat.matches is True


@pytest.mark.asyncio
async def test_score_just_below_threshold_is_not_toxic():
    classifier = FakeClassifier(scores={"threat": 0.7999})
    decision = await make_policy(classifier=classifier, threshold=0.8).evaluate(make_command(text="x"))
    assert decision.is_toxic is False


@pytest.mark.asyncio
async def test_classifier_failure_propagates():
    classifier = FakeClassifier(error=ClassificationError("model exploded"))
    with pytest.raises(ClassificationError):
        await make_policy(classifier=classifier).evaluate(make_command())


# ---------------------------------------------------------------------------
# Intervention
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_toxic_comment_with_high_draw_intervenes():
    poster = FakePoster()
    rng = FakeRng(0.73)
    command = make_command()

    decision = await make_policy(poster=poster, rng=rng).evaluate(command)

    assert decision.is_toxic is True
    assert decision.should_intervene is True
    assert command.should_intervene is True
    assert command.survey_url == "https://survey.example/s/abc"
    assert rng.seeds == ["1357018716"]
    assert decision.posted is True
    assert len(poster.issue_comments) == 1
    owner, repo, number, body = poster.issue_comments[0]
    assert (owner, repo, number) == ("octocat", "Hello-World", 42)
    assert body.startswith(DEFAULT_INTERVENTION_MESSAGE)
    assert "https://survey.example/s/abc" in body


@pytest.mark.asyncio
async def test_low_draw_does_not_intervene_but_keeps_survey_url():
    poster = FakePoster()
    survey = FakeSurvey()
    command = make_command()

    decision = await make_policy(poster=poster, survey=survey, rng=FakeRng(0.5)).evaluate(command)

    assert decision.is_toxic is True
    assert decision.should_intervene is False
    assert command.survey_url == "https://survey.example/s/abc"
    assert survey.calls == [("octocat/Hello-World", 42)]
    assert poster.issue_comments == []


@pytest.mark.asyncio
async def test_silent_mode_never_intervenes():
    poster = FakePoster()
    command = make_command()

    decision = await make_policy(poster=poster, rng=FakeRng(0.99), silent=True).evaluate(command)

    assert decision.is_toxic is True
    assert decision.should_intervene is False
    assert command.survey_url == "https://survey.example/s/abc"
    assert poster.issue_comments == []
    assert poster.review_replies == []


@pytest.mark.asyncio
async def test_custom_message_is_used_as_prefix():
    poster = FakePoster()
    await make_policy(poster=poster, message="Please keep it civil.").evaluate(make_command())

    body = poster.issue_comments[0][3]
    assert body == build_intervention_message("Please keep it civil.", "https://survey.example/s/abc")
    assert body.startswith("Please keep it civil.\n\n-----------------------------\n\n")
    assert body.endswith("responding to the survey here: https://survey.example/s/abc")


@pytest.mark.parametrize("location", [LogTypes.COMMENT, LogTypes.REVIEW, LogTypes.ISSUE, LogTypes.PULL_REQUEST])
@pytest.mark.asyncio
async def test_thread_locations_post_top_level_comment(location):
    poster = FakePoster()
    await make_policy(poster=poster).evaluate(make_command(location=location))

    assert len(poster.issue_comments) == 1
    assert poster.review_replies == []


@pytest.mark.asyncio
async def test_review_comment_posts_threaded_reply():
    poster = FakePoster()
    await make_policy(poster=poster).evaluate(make_command(location=LogTypes.REVIEW_COMMENT, comment_id=98765))

    assert poster.issue_comments == []
    assert len(poster.review_replies) == 1
    owner, repo, number, comment_id, body = poster.review_replies[0]
    assert (owner, repo, number, comment_id) == ("octocat", "Hello-World", 42, 98765)


@pytest.mark.asyncio
async def test_review_comment_without_id_is_an_error():
    poster = FakePoster()
    command = make_command(location=LogTypes.REVIEW_COMMENT, comment_id=None)

    with pytest.raises(MissingCommentIdError):
        await make_policy(poster=poster).evaluate(command)
    assert poster.review_replies == []


@pytest.mark.asyncio
async def test_survey_failure_propagates_and_nothing_is_posted():
    poster = FakePoster()
    survey = FakeSurvey(error=SurveyUnreachableError("Could not reach survey endpoint"))

    with pytest.raises(SurveyUnreachableError):
        await make_policy(poster=poster, survey=survey).evaluate(make_command())
    assert poster.issue_comments == []


@pytest.mark.asyncio
async def test_post_failure_keeps_classification():
    command = make_command()

    decision = await make_policy(poster=FakePoster(fail=True)).evaluate(command)

    assert decision.is_toxic is True
    assert decision.should_intervene is True
    assert decision.posted is False
    assert "Resource not accessible" in decision.post_error


@pytest.mark.asyncio
async def test_decision_is_stable_per_thread():
    outcomes = []
    for _ in range(3):
        for issue_number in (42, 7, 42):
            command = make_command(issue_number=issue_number)
            decision = await make_policy(rng=seeded_random).evaluate(command)
            outcomes.append((issue_number, decision.should_intervene))

    by_thread = {}
    for issue_number, should_intervene in outcomes:
        by_thread.setdefault(issue_number, set()).add(should_intervene)
    assert all(len(values) == 1 for values in by_thread.values())
