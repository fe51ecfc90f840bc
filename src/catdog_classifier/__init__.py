"""Live cat-vs-dog classification of camera frames with an ONNX model."""

__version__ = "0.0.1"
