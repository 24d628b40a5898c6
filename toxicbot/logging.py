import logging
import sys


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=level,
    )
    return logging.getLogger("toxicbot")


def set_failed(message: str) -> None:
    """Log the failure and surface it as a GitHub Actions error annotation."""
    logging.getLogger("toxicbot").error(message)
    # Workflow commands need '%', CR and LF escaped.
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    sys.stdout.write(f"::error::{escaped}\n")
    sys.stdout.flush()
