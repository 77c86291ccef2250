"""Supported models and their publication metadata."""

from .registry import (
    DWD,
    NOAA,
    PROVIDERS,
    MODEL_REGISTRY,
    ModelDescriptor,
    lookup,
    get_model,
    supported_models,
)

__all__ = [
    "DWD",
    "NOAA",
    "PROVIDERS",
    "MODEL_REGISTRY",
    "ModelDescriptor",
    "lookup",
    "get_model",
    "supported_models",
]
