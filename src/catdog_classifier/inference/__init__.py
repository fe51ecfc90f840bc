"""Classification inference framework."""

from catdog_classifier.inference.base import (
    BaseClassificationInferencer,
    ModelLoadError,
)
from catdog_classifier.inference.onnx_inferencer import (
    ONNXClassificationInferencer,
    load_model_bytes,
)
from catdog_classifier.inference.postprocess import interpret_probabilities

__all__ = [
    "BaseClassificationInferencer",
    "ModelLoadError",
    "ONNXClassificationInferencer",
    "interpret_probabilities",
    "load_model_bytes",
]
