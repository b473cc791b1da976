"""Inference-backed enrichment services."""

from .behavior import BehaviorAnalysis, PreferenceRefresh, filter_food_types, infer_preferences, refresh_preferences
from .chatbot import generate_chatbot_response
from .client import InferenceClient, InferenceService
from .content import ImageAnalysis, analyze_food_image

__all__ = [
    "BehaviorAnalysis",
    "ImageAnalysis",
    "InferenceClient",
    "InferenceService",
    "PreferenceRefresh",
    "analyze_food_image",
    "filter_food_types",
    "generate_chatbot_response",
    "infer_preferences",
    "refresh_preferences",
]
