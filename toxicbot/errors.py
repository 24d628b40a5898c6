"""
Error taxonomy for the moderation pipeline.

Classification, survey and intervention errors abort the current event.
GitHub API and log sink errors are reported by the caller and do not.
"""
from typing import Optional


class ToxicBotError(Exception):
    """Base class for every error raised by toxicbot."""


class ConfigError(ToxicBotError):
    pass


class EventPayloadError(ToxicBotError):
    pass


class ClassificationError(ToxicBotError):
    pass


class ClassifierUnavailableError(ClassificationError):
    pass


class SurveyError(ToxicBotError):
    pass


class SurveyUnreachableError(SurveyError):
    pass


class SurveyRejectedError(SurveyError):
    pass


class InterventionError(ToxicBotError):
    pass


class MissingCommentIdError(InterventionError):
    pass


class GitHubApiError(ToxicBotError):
    pass


class GitHubTransportError(GitHubApiError):
    pass


class GitHubRejectedError(GitHubApiError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LogSinkError(ToxicBotError):
    pass


class LogSinkUnreachableError(LogSinkError):
    pass


class LogSinkRejectedError(LogSinkError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
