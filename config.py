"""
Configuration for the GitHub toxicity moderation bot.
Values come from GitHub Actions inputs (INPUT_<NAME>) or plain environment
variables; a local .env file is honoured for development runs.
"""
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from toxicbot.errors import ConfigError

load_dotenv()

# ============================================================================
# DEFAULTS
# ============================================================================
DEFAULT_THRESHOLD = 0.8
DEFAULT_API_URL = "https://toxic.research.cassee.dev"
DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_MODEL_NAME = "unitary/toxic-bert"
DEFAULT_HTTP_TIMEOUT = 15.0  # seconds


def get_input(name: str, default: str = "") -> str:
    """Read an action input the way the Actions runner exposes it.

    The runner sets INPUT_<NAME> with spaces replaced by underscores; the
    bare name is accepted as well so the bot can run outside Actions.
    """
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    value = os.getenv(key)
    if value is None:
        value = os.getenv(name, default)
    return value.strip()


@dataclass(frozen=True)
class Settings:
    log_key: str
    github_token: str = ""
    silent_mode: bool = False
    intervention_message: str = ""
    threshold: float = DEFAULT_THRESHOLD
    api_url: str = DEFAULT_API_URL
    github_api_url: str = DEFAULT_GITHUB_API_URL
    repository: str = ""
    event_name: str = ""
    event_path: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    model_name: str = DEFAULT_MODEL_NAME
    log_level: str = "INFO"


def _parse_float(name: str, raw: str, default: float) -> float:
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def load_settings() -> Settings:
    log_key = get_input("LOG_KEY")
    if not log_key:
        raise ConfigError("No LOG_KEY was read from the input.")

    threshold = _parse_float("THRESHOLD", get_input("THRESHOLD"), DEFAULT_THRESHOLD)
    if not 0 < threshold <= 1:
        raise ConfigError(f"THRESHOLD must be in (0, 1], got {threshold}")

    http_timeout = _parse_float("HTTP_TIMEOUT", get_input("HTTP_TIMEOUT"), DEFAULT_HTTP_TIMEOUT)
    if http_timeout <= 0:
        raise ConfigError(f"HTTP_TIMEOUT must be positive, got {http_timeout}")

    return Settings(
        log_key=log_key,
        github_token=get_input("GITHUB_TOKEN"),
        silent_mode=get_input("SILENT").lower() == "true",
        intervention_message=get_input("MESSAGE"),
        threshold=threshold,
        api_url=(get_input("API_URL") or DEFAULT_API_URL).rstrip("/"),
        github_api_url=os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/"),
        repository=os.getenv("GITHUB_REPOSITORY", ""),
        event_name=os.getenv("GITHUB_EVENT_NAME", ""),
        event_path=os.getenv("GITHUB_EVENT_PATH", ""),
        http_timeout=http_timeout,
        model_name=get_input("MODEL_NAME") or DEFAULT_MODEL_NAME,
        log_level=(get_input("LOG_LEVEL") or "INFO").upper(),
    )
