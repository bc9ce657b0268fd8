"""Flask route blueprints for the studyrag client application."""

from studyrag.client.routes.chat import chat_bp
from studyrag.client.routes.config import get_config, init_config
from studyrag.client.routes.documents import documents_bp
from studyrag.client.routes.health import health_bp
from studyrag.client.routes.quiz import quiz_bp

__all__ = [
    "chat_bp",
    "documents_bp",
    "health_bp",
    "quiz_bp",
    "init_config",
    "get_config",
]
