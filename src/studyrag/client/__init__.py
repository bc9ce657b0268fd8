"""Client interfaces (Flask app and CLI) for StudyRAG."""
