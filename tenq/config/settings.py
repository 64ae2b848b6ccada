"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


class Config:
    TESTING = os.getenv("TESTING", "false").lower() in _TRUTHY
    DEBUG = os.getenv("DEBUG", "false").lower() in _TRUTHY

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_PATH = os.getenv("LOG_PATH", "")
    LOG_FORMAT = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s",
    )

    # OpenAI
    OPENAI_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
    QUESTION_MAX_TOKENS = int(os.getenv("QUESTION_MAX_TOKENS", "150"))
    SUMMARY_MAX_TOKENS = int(os.getenv("SUMMARY_MAX_TOKENS", "500"))

    # Per-attempt SDK timeout and the outer bound on one guarded call
    OPENAI_TIMEOUT_SECONDS = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "15"))
    OPENAI_CONNECT_TIMEOUT_SECONDS = float(
        os.getenv("OPENAI_CONNECT_TIMEOUT_SECONDS", "5")
    )
    OPENAI_CALL_TIMEOUT_SECONDS = float(
        os.getenv("OPENAI_CALL_TIMEOUT_SECONDS", "60")
    )
    OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

    # Circuit breaker
    OPENAI_CIRCUIT_RESET_TIMEOUT_SECONDS = float(
        os.getenv("OPENAI_CIRCUIT_RESET_TIMEOUT_SECONDS", "60")
    )
    OPENAI_CIRCUIT_ERROR_THRESHOLD = float(
        os.getenv("OPENAI_CIRCUIT_ERROR_THRESHOLD", "50")
    )  # percent
    OPENAI_CIRCUIT_VOLUME_THRESHOLD = int(
        os.getenv("OPENAI_CIRCUIT_VOLUME_THRESHOLD", "10")
    )
    OPENAI_CIRCUIT_ROLLING_WINDOW_SECONDS = float(
        os.getenv("OPENAI_CIRCUIT_ROLLING_WINDOW_SECONDS", "10")
    )

    # Conversation limits
    MAX_TITLE_LENGTH = int(os.getenv("MAX_TITLE_LENGTH", "50"))
    MAX_RESPONSE_LENGTH = int(os.getenv("MAX_RESPONSE_LENGTH", "2000"))
    MAX_QUESTION_LENGTH = int(os.getenv("MAX_QUESTION_LENGTH", "2000"))
    MAX_SUMMARY_LENGTH = int(os.getenv("MAX_SUMMARY_LENGTH", "10000"))
    TOTAL_QUESTIONS = 10

    # Command catalog
    COMMANDS_FILE = os.getenv(
        "COMMANDS_FILE", os.path.join(os.path.dirname(__file__), "commands.json")
    )

    # Auth
    SERVICE_AUTH_SECRET = os.getenv("SERVICE_AUTH_SECRET", "")
    SERVICE_AUTH_ISSUER = os.getenv("SERVICE_AUTH_ISSUER", "tenq-auth")
    SERVICE_AUTH_AUDIENCE = os.getenv("SERVICE_AUTH_AUDIENCE", "tenq-api")

    # Admission control for response submission
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RESPONSE_RATE_LIMIT_MAX = int(os.getenv("RESPONSE_RATE_LIMIT_MAX", "20"))
    RESPONSE_RATE_LIMIT_WINDOW_SECONDS = int(
        os.getenv("RESPONSE_RATE_LIMIT_WINDOW_SECONDS", "60")
    )
    RESPONSE_CONCURRENCY_MAX = int(os.getenv("RESPONSE_CONCURRENCY_MAX", "10"))

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/tenq.db")
    DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() in _TRUTHY

    # Metrics
    METRICS_TOKEN = os.getenv("METRICS_TOKEN", "")

    @classmethod
    def response_rate_limit(cls) -> str:
        """Limit string in the `limits` notation, e.g. "20 per 60 seconds"."""
        return (
            f"{cls.RESPONSE_RATE_LIMIT_MAX} per "
            f"{cls.RESPONSE_RATE_LIMIT_WINDOW_SECONDS} seconds"
        )


class DevelopmentConfig(Config):
    """Development configuration"""

    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True


class ProductionConfig(Config):
    """Production configuration"""

    pass


# Configuration dictionary
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env=None):
    """Get configuration based on environment"""
    if env is None:
        env = os.getenv("APP_ENV", "development")
    return config.get(env, config["default"])
