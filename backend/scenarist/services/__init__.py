"""External service clients (search, retrieval, language models)."""
