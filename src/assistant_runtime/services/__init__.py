"""Configuration services for the assistant runtime."""

from .settings import AssistantSettings

__all__ = ["AssistantSettings"]
