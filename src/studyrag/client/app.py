"""Flask web application for the StudyRAG study assistant.

This module provides the REST API for uploading PDFs, chatting with them
using Retrieval-Augmented Generation, generating and grading quizzes and
reporting study progress. All routes delegate to a shared StudyAssistant.
"""

import logging
import os

from dotenv import load_dotenv
from flask import Flask

from studyrag.client.routes import (
    chat_bp,
    documents_bp,
    health_bp,
    init_config,
    quiz_bp,
)
from studyrag.constants import MAX_UPLOAD_SIZE_BYTES
from studyrag.service.assistant import build_assistant

# Configure logging
log_level = os.getenv("LOG_LEVEL", "DEBUG")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded")

# Create Flask app
app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_SIZE_BYTES
logger.debug("Flask app created")

# Register blueprints
app.register_blueprint(chat_bp)
app.register_blueprint(documents_bp)
app.register_blueprint(quiz_bp)
app.register_blueprint(health_bp)


def initialize_services():
    """Build the StudyAssistant (LLM service, RavenDB store, file storage) on startup."""
    logger.info("🔧 Initializing services...")
    assistant = build_assistant()
    logger.info(f"✅ Study assistant initialized with model {assistant.llm.model}")
    init_config(assistant=assistant)


def create_app():
    """Factory function for creating the Flask application.

    This function is used by WSGI servers like gunicorn to create the app.
    It initializes services before returning the app instance.

    Returns:
        Flask: The configured Flask application instance
    """
    initialize_services()
    return app


def main() -> None:
    """Entry point for the Flask application command-line interface."""
    print("🚀 Starting StudyRAG Flask application...")

    print("📦 Initializing services...")
    initialize_services()
    print("✅ Services initialized successfully")

    host = os.getenv("FLASK_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_PORT", "5000"))
    debug = os.getenv("FLASK_ENV", "development") == "development"

    print(f"🌐 Starting Flask server on http://{host}:{port}")
    print(f"🔧 Debug mode: {debug}")
    print("📝 Press CTRL+C to quit")

    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
