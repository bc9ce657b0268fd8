"""Shared configuration for route modules."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RouteConfig:
    """Configuration container for Flask route dependencies.

    This replaces global variables with a proper configuration object
    that can be passed around and tested more easily.
    """

    assistant: Any = None
    allowed_extensions: set[str] = field(default_factory=lambda: {"pdf"})


# Single shared config instance
_config = RouteConfig()


def get_config() -> RouteConfig:
    """Get the shared route configuration.

    Returns:
        RouteConfig instance with current settings
    """
    return _config


def init_config(assistant: Any = None) -> None:
    """Initialize the shared route configuration.

    Args:
        assistant: StudyAssistant instance used by every route
    """
    if assistant is not None:
        _config.assistant = assistant
