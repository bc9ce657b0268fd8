"""Server-side RAG pipeline for StudyRAG."""
