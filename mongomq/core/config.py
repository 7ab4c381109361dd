from typing import Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "MongoMQ"
    VERSION: str = "0.2.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # MongoDB (primary backend)
    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DATABASE: str = "queues"
    MONGO_WRITE_CONCERN_W: int = 1
    MONGO_SOCKET_TIMEOUT_MS: int = 300000  # bounds the store-side wait of a claim
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # Lease settings
    VISIBILITY_TIMEOUT_SECONDS: int = 3600
    PRIMARY_ID_MAX_LENGTH: int = 32

    # Amazon SQS (secondary backend)
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    SQS_ENDPOINT_URL: Optional[str] = None
    SQS_WAIT_TIME_SECONDS: int = 0

    # Retry Settings
    DEFAULT_MAX_ATTEMPTS: int = 1
    RETRY_BACKOFF_BASE: float = 2.0
    RETRY_BACKOFF_UNIT_SECONDS: float = 1.0
    RETRY_MAX_DELAY_SECONDS: float = 3600.0

    # Consumer Settings
    CONSUMER_BATCH_SIZE: int = 10
    CONSUMER_POLL_INTERVAL_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        allowed_envs = ["development", "staging", "production", "testing"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v.upper()

    @field_validator("MONGO_WRITE_CONCERN_W")
    @classmethod
    def validate_write_concern(cls, v):
        # Unacknowledged writes cannot report a failed insert or a missing id
        if v < 1:
            raise ValueError("MONGO_WRITE_CONCERN_W must be at least 1")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
