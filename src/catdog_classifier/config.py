"""Pydantic frozen configuration models for catdog_classifier."""

from __future__ import annotations

from importlib import resources
from pathlib import Path
from typing import Literal

from omegaconf import OmegaConf
from pydantic import BaseModel, Field, model_validator

from catdog_classifier.schemas.result import UNKNOWN_LABEL

DEFAULT_CONFIG = "default.yaml"
DEFAULT_LABELS = ("Cat", "Dog")
DEFAULT_THRESHOLD = 0.95
DEFAULT_NUM_THREADS = 4
DEFAULT_ACCELERATED_PROVIDERS = (
    "CUDAExecutionProvider",
    "CoreMLExecutionProvider",
    "DmlExecutionProvider",
    "NnapiExecutionProvider",
)


class AdapterConfig(BaseModel, frozen=True):
    """Geometry and layout of the tensor fed to the model."""

    input_size: int = Field(default=224, gt=0)
    input_channels: Literal[1, 3] = 1
    layout: Literal["NHWC", "NCHW"] = "NHWC"
    jpeg_roundtrip: bool = False
    jpeg_quality: int = Field(default=100, ge=1, le=100)


class RuntimeConfig(BaseModel, frozen=True):
    """ONNX Runtime session settings.

    ``accelerated_providers`` are tried in order; when none is available
    the session runs on the CPU provider with ``num_threads`` intra-op
    threads.
    """

    model_path: str = "catsdogs.onnx"
    accelerated_providers: tuple[str, ...] = DEFAULT_ACCELERATED_PROVIDERS
    num_threads: int = Field(default=DEFAULT_NUM_THREADS, ge=1)
    apply_softmax: bool = False


class ClassifierConfig(BaseModel, frozen=True):
    """Label set and confidence threshold for result interpretation."""

    labels: tuple[str, ...] = DEFAULT_LABELS
    threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0.0, le=1.0)
    unknown_label: str = UNKNOWN_LABEL

    @model_validator(mode="after")
    def _labels_are_distinct(self) -> "ClassifierConfig":
        if not self.labels:
            raise ValueError("labels must not be empty")
        if len(set(self.labels)) != len(self.labels):
            raise ValueError(f"labels must be unique, got {list(self.labels)}")
        if self.unknown_label in self.labels:
            raise ValueError(
                f"unknown_label {self.unknown_label!r} collides with a class label"
            )
        return self


class AppConfig(BaseModel, frozen=True):
    """Top-level configuration.

    Validated at construction and frozen afterwards.
    """

    adapter: AdapterConfig = Field(default_factory=AdapterConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    log_level: str = "INFO"


def load_config(
    path: str | Path | None = None,
    overrides: list[str] | None = None,
) -> AppConfig:
    """Load the packaged defaults, merge a user YAML file and dotlist overrides.

    Overrides use the Hydra command-line syntax, e.g.
    ``["classifier.threshold=0.9", "runtime.num_threads=2"]``.
    """
    default_text = (
        resources.files("catdog_classifier") / "conf" / DEFAULT_CONFIG
    ).read_text()
    layers = [OmegaConf.create(default_text)]
    if path is not None:
        layers.append(OmegaConf.load(Path(path)))
    if overrides:
        layers.append(OmegaConf.from_dotlist(overrides))
    cfg = OmegaConf.merge(*layers)
    return AppConfig.model_validate(OmegaConf.to_container(cfg, resolve=True))
