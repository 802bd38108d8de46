"""Application configuration settings."""
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import model_validator
from typing import List

# Get the server directory path
SERVER_DIR = Path(__file__).parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # CORS: explicit list of allowed origins
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Prediction API (price / demand / yield models)
    PREDICTION_API_BASE: str = "http://127.0.0.1:8000/api/ml"
    PREDICTION_TIMEOUT: int = 15

    # Dialog tuning: confidence tiers for the top intent match
    DETECTION_THRESHOLD: float = 0.1
    HIGH_CONFIDENCE: float = 0.7
    MEDIUM_CONFIDENCE: float = 0.4
    DISAMBIGUATION_THRESHOLD: float = 0.3

    # Divisor in confidence = min(1, score / CONFIDENCE_SCALE)
    CONFIDENCE_SCALE: float = 1.0

    # Crop prompts allowed before falling back to the suggestion menu; 0 = no limit
    MAX_CLARIFICATION_ATTEMPTS: int = 0

    # Context Management
    MAX_HISTORY: int = 20
    DEFAULT_TIMEFRAME: str = "next week"
    DEFAULT_MARKET: str = "colombo"

    # Session registry
    MAX_SESSIONS: int = 1000
    SESSION_IDLE_MINUTES: int = 60

    @model_validator(mode="after")
    def _validate_tiers(self) -> "Settings":
        if not 0 <= self.MEDIUM_CONFIDENCE <= self.HIGH_CONFIDENCE <= 1:
            raise ValueError(
                "Confidence tiers must satisfy 0 <= MEDIUM_CONFIDENCE <= HIGH_CONFIDENCE <= 1"
            )
        if self.CONFIDENCE_SCALE <= 0:
            raise ValueError("CONFIDENCE_SCALE must be positive")
        if self.MAX_HISTORY < 1:
            raise ValueError("MAX_HISTORY must be at least 1")
        return self

    class Config:
        env_file = str(SERVER_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
