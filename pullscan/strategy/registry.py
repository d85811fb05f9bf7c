"""Classifier registry — maps classifier names to classes.

Used by the scanner and CLI to instantiate a classifier from ``Config.classifier``.
"""

from typing import Optional

from pullscan.config import ScanSettings
from pullscan.strategy.base import ClassifierProtocol
from pullscan.strategy.classifier import RandomizedClassifier
from pullscan.strategy.trend import EmaTrendClassifier


CLASSIFIER_REGISTRY: dict[str, type] = {
    "randomized": RandomizedClassifier,
    "ema": EmaTrendClassifier,
}


def get_classifier(
    name: str, settings: Optional[ScanSettings] = None,
) -> ClassifierProtocol:
    """Look up and instantiate a classifier by registry key.

    Raises ``KeyError`` if the classifier name is not registered.
    """
    if name not in CLASSIFIER_REGISTRY:
        raise KeyError(
            f"Unknown classifier '{name}'. "
            f"Available: {', '.join(CLASSIFIER_REGISTRY.keys())}"
        )
    return CLASSIFIER_REGISTRY[name](settings)
