from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class LogTypes(str, Enum):
    """Where the text of an event lives."""
    COMMENT = "Comment"
    ISSUE = "Issue"
    REVIEW = "Review"
    REVIEW_COMMENT = "Review Comment"
    PULL_REQUEST = "Pull Request"


class Triggers(str, Enum):
    CREATE = "Create"
    EDIT = "Edit"
    DELETE = "Delete"
    OTHER = "Other"  # catch-all for issue and PR events


class CommandKind(str, Enum):
    TOXICITY_CHECK = "ToxicityCheck"
    LOGGING = "Logging"


@dataclass
class EventDescriptor:
    """Normalized view of a GitHub event; the classifier only reads this."""
    event_name: str
    action: Optional[str]
    slug: str
    number: Optional[int] = None
    comment_body: Optional[str] = None
    comment_id: Optional[int] = None
    issue_body: Optional[str] = None
    pull_request_body: Optional[str] = None
    review_body: Optional[str] = None
    changes: Mapping[str, Any] = field(default_factory=dict)
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class CategoryPrediction:
    category: str
    matches: bool
    score: float


@dataclass
class ToxicityCommand:
    context: Mapping[str, Any]
    location: LogTypes
    trigger: Triggers
    slug: str
    issue_number: Optional[int]
    text: str = ""
    comment_id: Optional[int] = None
    predictions: Optional[List[CategoryPrediction]] = None
    is_toxic: bool = False
    should_intervene: bool = False
    survey_url: Optional[str] = None
    kind: CommandKind = field(default=CommandKind.TOXICITY_CHECK, init=False)

    @classmethod
    def create(cls, event: EventDescriptor, location: LogTypes, trigger: Triggers,
               text: Optional[str] = None) -> "ToxicityCommand":
        # Explicit text wins, otherwise fall back to the comment body.
        if text is None:
            text = event.comment_body
        return cls(
            context=event.payload,
            location=location,
            trigger=trigger,
            slug=event.slug,
            issue_number=event.number,
            text=text or "",
            comment_id=event.comment_id,
        )

    @property
    def project_owner(self) -> str:
        return self.slug.split("/")[0]

    @property
    def project_name(self) -> str:
        return self.slug.split("/")[1]

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "location": self.location.value,
            "trigger": self.trigger.value,
            "slug": self.slug,
            "issueNumber": self.issue_number,
            "text": self.text,
            "predictions": [
                {"category": p.category, "matches": p.matches, "score": p.score}
                for p in (self.predictions or [])
            ],
            "isToxic": self.is_toxic,
            "shouldIntervene": self.should_intervene,
            "toxicitySurveyUrl": self.survey_url,
            "context": dict(self.context),
        }


@dataclass
class LoggingCommand:
    context: Mapping[str, Any]
    location: LogTypes
    trigger: Triggers
    kind: CommandKind = field(default=CommandKind.LOGGING, init=False)

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "location": self.location.value,
            "trigger": self.trigger.value,
            "context": dict(self.context),
        }


Command = Union[ToxicityCommand, LoggingCommand]


@dataclass
class ToxicityDecision:
    is_toxic: bool
    should_intervene: bool = False
    survey_url: Optional[str] = None
    message: Optional[str] = None
    posted: bool = False
    post_error: Optional[str] = None


@dataclass
class EventOutcome:
    command: Optional[Command]
    success: bool
    decision: Optional[ToxicityDecision] = None
    logged: bool = False
    duration: float = 0.0  # seconds
    error: Optional[str] = None
