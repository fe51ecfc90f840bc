"""Threading runtime: keep-latest frame slot, inference worker, result channel."""

from catdog_classifier.runtime.channel import ResultChannel
from catdog_classifier.runtime.slot import LatestFrameSlot
from catdog_classifier.runtime.worker import InferenceWorker

__all__ = [
    "InferenceWorker",
    "LatestFrameSlot",
    "ResultChannel",
]
