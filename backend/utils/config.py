"""
Configuration settings for the mock interview assistant.
All settings can be overridden via environment variables.
"""
import os
from dataclasses import dataclass, field


@dataclass
class StorageConfig:
    """Durable key-value store configuration."""
    path: str = field(default_factory=lambda: os.getenv("INTERVIEW_STORE_PATH", "./interview_store.json"))
    in_progress_key: str = "inProgressInterview"
    completed_key: str = "completedInterviews"


@dataclass
class InterviewConfig:
    """Interview flow configuration."""
    # Pause before the next question once an answer has been given
    answer_delay_seconds: float = field(
        default_factory=lambda: float(os.getenv("ANSWER_DELAY_SECONDS", "1.0"))
    )
    tick_seconds: float = 1.0
    timeout_sentinel: str = "(Time ran out)"
    points_per_question: int = 10


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))


@dataclass
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


class Config:
    """Main configuration class combining all config sections."""

    def __init__(self):
        self.storage = StorageConfig()
        self.interview = InterviewConfig()
        self.server = ServerConfig()
        self.logging = LoggingConfig()


# Global config instance
config = Config()
