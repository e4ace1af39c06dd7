"""Configuration for Exa AI client."""

from pydantic import BaseModel


class ExaConfig(BaseModel):
    """Configuration for Exa AI client."""

    # Retry settings
    timeout_seconds: float = 30.0
    max_retries: int = 3

    # Search defaults
    basic_search_type: str = "auto"
    advanced_search_type: str = "neural"
    search_category: str = "news"
