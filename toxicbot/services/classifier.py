"""
Local toxicity classifier backed by a transformers text-classification
pipeline (Toxic-BERT by default).

Model: unitary/toxic-bert
- Multi-label: every label gets an independent sigmoid score
- Size: ~400MB (one-time download, cached by transformers)
"""
from __future__ import annotations

import importlib.util
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from toxicbot.errors import ClassificationError, ClassifierUnavailableError
from toxicbot.models import CategoryPrediction

logger = logging.getLogger(__name__)

# toxic-bert label -> category name used in commands and the event log
LABEL_TO_CATEGORY = {
    "identity_hate": "identity_attack",
    "insult": "insult",
    "severe_toxic": "severe_toxicity",
    "threat": "threat",
    "toxic": "toxicity",
}

MAX_CHARS = 2000  # keep well inside the 512 token limit after truncation


def load_pipeline(model_name: str) -> Callable[..., Any]:
    if (
        importlib.util.find_spec("transformers") is None
        or importlib.util.find_spec("torch") is None
    ):
        raise ClassifierUnavailableError(
            "transformers/torch not installed - install the 'model' extra to run the toxicity check"
        )
    from transformers import pipeline

    try:
        return pipeline(
            "text-classification",
            model=model_name,
            device=-1,  # -1 = CPU, 0 = GPU if available
        )
    except Exception as e:
        raise ClassifierUnavailableError(f"Failed to load {model_name}: {e}") from e


class ToxicityClassifier:
    """
    Scores texts per toxicity category. The pipeline is built on first use
    and reused for every later call.
    """

    def __init__(self, model_name: str, pipe: Optional[Callable[..., Any]] = None,
                 loader: Callable[[str], Callable[..., Any]] = load_pipeline):
        self.model_name = model_name
        self._pipe = pipe
        self._loader = loader

    def _pipeline(self) -> Callable[..., Any]:
        if self._pipe is None:
            self._pipe = self._loader(self.model_name)
            logger.info(f"Toxicity model {self.model_name} loaded")
        return self._pipe

    def classify(self, texts: Sequence[str], categories: Sequence[str],
                 threshold: float) -> List[List[CategoryPrediction]]:
        """
        Returns one list per input text with a CategoryPrediction for each
        requested category. A score equal to the threshold counts as a match.
        """
        pipe = self._pipeline()
        inputs = [text[:MAX_CHARS] for text in texts]
        try:
            raw = pipe(inputs, top_k=None, function_to_apply="sigmoid", truncation=True)
        except Exception as e:
            raise ClassificationError(f"Toxicity model failed: {e}") from e

        # A single input may come back flattened to one list of label dicts.
        if raw and isinstance(raw[0], dict):
            raw = [raw]
        if len(raw) != len(inputs):
            raise ClassificationError(
                f"Toxicity model returned {len(raw)} results for {len(inputs)} texts"
            )

        results = []
        for label_scores in raw:
            scores = _scores_by_category(label_scores)
            results.append([
                CategoryPrediction(
                    category=category,
                    matches=scores.get(category, 0.0) >= threshold,
                    score=scores.get(category, 0.0),
                )
                for category in categories
            ])
        return results


def _scores_by_category(label_scores: Sequence[Dict[str, Any]]) -> Dict[str, float]:
    scores = {}
    for item in label_scores:
        label = str(item.get("label", "")).lower()
        category = LABEL_TO_CATEGORY.get(label)
        if category is not None:
            scores[category] = float(item.get("score", 0.0))
    return scores
