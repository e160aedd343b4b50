"""Configuration management for the Creative Design service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the CREATIVE_DESIGN_
prefix, allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (CREATIVE_DESIGN_* prefix)
2. .env file in the project root
3. Default values defined in CreativeDesignConfig

Example .env file:
    CREATIVE_DESIGN_PROMPT_MAX_LENGTH=500
    CREATIVE_DESIGN_RATE_LIMIT_MAX_REQUESTS=3
    CREATIVE_DESIGN_RETRY_TIMEOUT_MS=30000
    CREATIVE_DESIGN_DATA_DIR=data

Explicit Instances
------------------
A module-level ``config`` instance exists for the CLI entry point only.
Services never read it implicitly: the application factory receives a
config object and builds the rate limiter, orchestrator, repository and
draft cache from it, so tests can construct fresh instances per case.

Usage Example
-------------
    from creative_design.core.config import CreativeDesignConfig

    cfg = CreativeDesignConfig(data_dir="/tmp/designs")
    limiter = RateLimiter(cfg.rate_limit_config())
    policy = cfg.retry_policy()

Directory Management
--------------------
The configuration automatically creates required directories on initialization:
- data_dir: holds the designs SQLite database
- drafts_dir: holds persisted draft documents
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from creative_design.core.models import DesignStyle

MIB = 1024 * 1024


class RateLimitConfig(BaseModel):
    """Sliding-window admission settings.

    Attributes:
        max_requests: Requests admitted per window.
        window_ms: Window length in milliseconds.
    """

    max_requests: int = Field(default=3, ge=1)
    window_ms: int = Field(default=60_000, ge=1)


class RetryPolicy(BaseModel):
    """Retry and timeout settings for one external call.

    Attributes:
        max_attempts: Total attempts including the first one.
        base_delay_ms: Backoff before the second attempt; doubles afterwards.
        per_attempt_timeout_ms: Deadline for every individual attempt.
    """

    max_attempts: int = Field(default=3, ge=1)
    base_delay_ms: int = Field(default=1000, ge=0)
    per_attempt_timeout_ms: int = Field(default=30_000, ge=1)


class CreativeDesignConfig(BaseSettings):
    """Main configuration for the Creative Design service.

    Attributes
    ----------
    Prompt Settings:
        prompt_max_length : int
            Maximum prompt length in characters (after stripping)
        prompt_min_length : int
            Minimum prompt length in characters (after stripping)

    Reference Image Settings:
        max_reference_image_bytes : int
            Largest decoded reference image accepted (10 MiB)
        supported_image_formats : list[str]
            Mime types accepted for reference images

    Rate Limiting:
        rate_limit_max_requests : int
            Generation calls admitted per window
        rate_limit_window_ms : int
            Sliding window length in milliseconds

    Retry Settings:
        retry_max_attempts : int
            Attempt budget for the external call
        retry_base_delay_ms : int
            First backoff delay, doubled on every further attempt
        retry_timeout_ms : int
            Per-attempt timeout

    Draft Persistence:
        draft_expiration_hours : float
            Draft time-to-live
        draft_max_storage_bytes : int
            Largest serialized draft accepted (5 MiB)
        draft_storage_key : str
            Key under which the draft document is stored

    Design Defaults:
        default_style : DesignStyle
        default_aspect_ratio : str
        aspect_ratios : list[str]
        default_width / default_height : int
            Dimensions reported when returned bytes cannot be decoded

    Paths:
        data_dir : Path
        designs_db_name : str
        drafts_dir_name : str

    Server Settings:
        server_host : str
        server_port : int
        log_level : str

    Examples
    --------
        >>> cfg = CreativeDesignConfig(rate_limit_max_requests=5, _env_file=None)
        >>> cfg.rate_limit_config().max_requests
        5
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CREATIVE_DESIGN_",
        case_sensitive=False,
    )

    # Prompt validation
    prompt_max_length: int = Field(default=500, ge=1)
    prompt_min_length: int = Field(default=1, ge=1)

    # Reference image validation
    max_reference_image_bytes: int = Field(
        default=10 * MIB,
        description="Maximum decoded size of the reference image",
        ge=1,
    )
    supported_image_formats: list[str] = Field(
        default=["image/png", "image/jpeg", "image/jpg", "image/webp"],
    )

    # Rate limiting (one limiter shared by every generation caller)
    rate_limit_max_requests: int = Field(default=3, ge=1)
    rate_limit_window_ms: int = Field(default=60_000, ge=1)

    # External call retry
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay_ms: int = Field(default=1000, ge=0)
    retry_timeout_ms: int = Field(default=30_000, ge=1)

    # Draft persistence
    draft_expiration_hours: float = Field(default=24.0, gt=0)
    draft_max_storage_bytes: int = Field(default=5 * MIB, ge=1)
    draft_storage_key: str = Field(default="creative-design-draft")

    # Design defaults
    default_style: DesignStyle = Field(default=DesignStyle.MODERN)
    default_aspect_ratio: str = Field(default="1:1")
    aspect_ratios: list[str] = Field(default=["1:1", "16:9", "9:16", "4:3"])
    default_width: int = Field(default=1024, ge=1)
    default_height: int = Field(default=1024, ge=1)

    # Paths
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the designs database and drafts",
    )
    designs_db_name: str = Field(default="designs.db")
    drafts_dir_name: str = Field(default="drafts")

    # Server
    server_host: str = Field(default="0.0.0.0")
    server_port: int = Field(default=7861, ge=1024, le=65535)
    log_level: str = Field(default="INFO")

    def __init__(self, **kwargs):
        """Initialize configuration and create required directories.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.drafts_dir.mkdir(parents=True, exist_ok=True)

    @property
    def designs_db_path(self) -> Path:
        """Path of the SQLite database backing the design repository."""
        return self.data_dir / self.designs_db_name

    @property
    def drafts_dir(self) -> Path:
        """Directory of the JSON documents backing the draft cache."""
        return self.data_dir / self.drafts_dir_name

    def rate_limit_config(self) -> RateLimitConfig:
        return RateLimitConfig(
            max_requests=self.rate_limit_max_requests,
            window_ms=self.rate_limit_window_ms,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay_ms=self.retry_base_delay_ms,
            per_attempt_timeout_ms=self.retry_timeout_ms,
        )


# Default configuration instance for the CLI entry point.
# Loaded from CREATIVE_DESIGN_* environment variables and the .env file.
config = CreativeDesignConfig()
