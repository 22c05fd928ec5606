"""Configuration management for CookIQ.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()

LANGUAGES = ("English", "Hindi", "Marathi", "Tamil", "Telugu", "Spanish", "French")
TIME_LIMITS = ("Any Time", "Under 15 mins", "Under 30 mins", "Under 60 mins")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # OpenRouter API Key: bearer token for the chat-completions endpoint
        self.OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
        # Any OpenAI-compatible base URL works, /chat/completions is appended
        self.OPENROUTER_BASE_URL: str = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
        # Recipe Model: text model used for recipe generation
        self.MODEL: str = os.getenv("MODEL", "meta-llama/llama-3.3-70b-instruct:free")
        # Vision Model: must accept image_url content parts
        self.VISION_MODEL: str = os.getenv("VISION_MODEL", "meta-llama/llama-3.2-11b-vision-instruct:free")
        # Attribution headers sent with every request
        self.HTTP_REFERER: str = os.getenv("HTTP_REFERER", "http://localhost:3000")
        self.APP_TITLE: str = os.getenv("APP_TITLE", "CookIQ")

        # LLM Model Parameters
        # Temperature: 0.7 keeps the three recipes varied
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Tokens: three full recipes with nutrition fit in 4000
        self.MAX_TOKENS: int = int(os.getenv("MAX_TOKENS", "4000"))

        # Abort deadlines (seconds). A timed-out call is a terminal failure, never retried
        self.GENERATION_TIMEOUT_S: int = int(os.getenv("GENERATION_TIMEOUT_S", "60"))
        self.IMAGE_TIMEOUT_S: int = int(os.getenv("IMAGE_TIMEOUT_S", "30"))

        # History Store: SQLite file holding the history document and the entry cap
        self.HISTORY_DB_FILE: str = os.getenv("HISTORY_DB_FILE", "cookiq.db")
        self.HISTORY_LIMIT: int = int(os.getenv("HISTORY_LIMIT", "20"))

        # Maximum image size (in MB) that can be analyzed. Default: 5 MB
        self.MAX_IMAGE_SIZE_MB: int = int(os.getenv("MAX_IMAGE_SIZE_MB", "5"))
        # Image Compression: Enable/disable image compression before upload
        self.COMPRESS_IMG: bool = os.getenv("COMPRESS_IMG", "true").lower() in ("true", "1", "yes")
        # Image Compression Threshold: Only compress if image size is above this (in KB)
        self.COMPRESS_IMG_THRESHOLD_KB: int = int(os.getenv("COMPRESS_IMG_THRESHOLD_KB", "300"))

        # User preference defaults
        self.DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "English")
        self.DEFAULT_TIME_LIMIT: str = os.getenv("DEFAULT_TIME_LIMIT", "Any Time")

    def validate(self) -> None:
        """Validate required configuration.

        Raises:
            ValueError: If required API keys are missing or invalid values provided.
        """
        if not self.OPENROUTER_API_KEY:
            raise ValueError("OPENROUTER_API_KEY environment variable is required")
        if not self.OPENROUTER_BASE_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"OPENROUTER_BASE_URL must be an http(s) URL, got: {self.OPENROUTER_BASE_URL}"
            )
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if self.MAX_TOKENS < 512:
            raise ValueError(
                f"MAX_TOKENS must be at least 512, got: {self.MAX_TOKENS}"
            )
        if self.GENERATION_TIMEOUT_S < 1 or self.IMAGE_TIMEOUT_S < 1:
            raise ValueError(
                "GENERATION_TIMEOUT_S and IMAGE_TIMEOUT_S must be at least 1 second, "
                f"got: {self.GENERATION_TIMEOUT_S}, {self.IMAGE_TIMEOUT_S}"
            )
        if self.HISTORY_LIMIT < 1:
            raise ValueError(
                f"HISTORY_LIMIT must be at least 1, got: {self.HISTORY_LIMIT}"
            )
        if self.DEFAULT_LANGUAGE not in LANGUAGES:
            raise ValueError(
                f"DEFAULT_LANGUAGE must be one of {', '.join(LANGUAGES)}, got: {self.DEFAULT_LANGUAGE}"
            )
        if self.DEFAULT_TIME_LIMIT not in TIME_LIMITS:
            raise ValueError(
                f"DEFAULT_TIME_LIMIT must be one of {', '.join(TIME_LIMITS)}, got: {self.DEFAULT_TIME_LIMIT}"
            )
