"""Core services: dispatch, change listeners, model selection."""

from .dispatch import BackgroundWorker, ImmediateContext, InlineWorker, MainContext, settle
from .model_selector import ModelSelection, ModelSelector, ModelSource

__all__ = [
    "BackgroundWorker",
    "ImmediateContext",
    "InlineWorker",
    "MainContext",
    "settle",
    "ModelSelection",
    "ModelSelector",
    "ModelSource",
]
