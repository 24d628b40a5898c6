from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict

logger = logging.getLogger("toxicbot")


def _new_stats() -> Dict:
    return {
        "total_events": 0,
        "failed_events": 0,
        "toxic_events": 0,
        "interventions": 0,
        "requests": defaultdict(int),
        "last_request": None,
        "started": datetime.now(),
    }


class Telemetry:
    """Request telemetry for one bot run."""

    def __init__(self):
        self.stats = _new_stats()

    def track_request(self, name: str, duration: float, success: bool) -> None:
        self.stats["total_events"] += 1
        if not success:
            self.stats["failed_events"] += 1
        self.stats["requests"][name] += 1
        self.stats["last_request"] = {
            "name": name,
            "duration": duration,
            "success": success,
            "timestamp": datetime.now().timestamp(),
        }
        logger.info(f"Request '{name}' finished in {duration:.3f}s (success={success})")

    def track_decision(self, is_toxic: bool, should_intervene: bool) -> None:
        if is_toxic:
            self.stats["toxic_events"] += 1
        if should_intervene:
            self.stats["interventions"] += 1
