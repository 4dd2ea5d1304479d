"""Configuration for vizbench, loaded from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    DEFAULT_DEMO_BASE_URL,
    DEFAULT_GENERATION_MODEL,
    DEFAULT_HOST,
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MAX_CONCURRENT,
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_PORT,
    DEFAULT_RATE_LIMIT,
    DEFAULT_SIMILARITY_CONCURRENCY,
    DEFAULT_VISION_MODEL,
    DEFAULT_WORKSPACE_ROOT,
)


@dataclass
class VizbenchConfig:
    """Runtime configuration loaded from environment variables."""

    # Workspace settings
    workspace_root: str = ""  # Defaults to <repo>/workspace if empty
    demo_base_url: str = DEFAULT_DEMO_BASE_URL

    # API server settings
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    rate_limit: int = DEFAULT_RATE_LIMIT
    cors_origins: list[str] | None = None

    # LLM settings
    api_key: str | None = None
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    generation_model: str = DEFAULT_GENERATION_MODEL
    vision_model: str = DEFAULT_VISION_MODEL
    llm_timeout: float = DEFAULT_LLM_TIMEOUT_SECONDS
    llm_max_concurrent: int = DEFAULT_LLM_MAX_CONCURRENT

    # Batch settings
    similarity_concurrency: int = DEFAULT_SIMILARITY_CONCURRENCY

    def __post_init__(self) -> None:
        """Validate config values and set defaults."""
        if not self.workspace_root:
            self.workspace_root = str(DEFAULT_WORKSPACE_ROOT)

        if not 1 <= self.port <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {self.port}")

        if self.rate_limit < 1:
            raise ValueError(f"rate_limit must be at least 1, got {self.rate_limit}")

        if self.llm_timeout <= 0:
            raise ValueError(f"llm_timeout must be positive, got {self.llm_timeout}")

        if self.llm_max_concurrent < 1:
            raise ValueError(
                f"llm_max_concurrent must be at least 1, got {self.llm_max_concurrent}"
            )

        if self.similarity_concurrency < 1:
            raise ValueError(
                f"similarity_concurrency must be at least 1, got {self.similarity_concurrency}"
            )

        if not self.demo_base_url.startswith(("http://", "https://")):
            raise ValueError(f"demo_base_url must be an http(s) URL, got '{self.demo_base_url}'")

        self.llm_base_url = self.llm_base_url.rstrip("/")
        self.demo_base_url = self.demo_base_url.rstrip("/")

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace_root)

    @classmethod
    def from_env(cls) -> "VizbenchConfig":
        """Create config from environment variables."""
        env = os.environ

        origins = [o.strip() for o in env.get("VIZBENCH_CORS_ORIGINS", "").split(",") if o.strip()]

        return cls(
            workspace_root=env.get("VIZBENCH_WORKSPACE_ROOT", ""),
            demo_base_url=env.get("VIZBENCH_DEMO_BASE_URL", DEFAULT_DEMO_BASE_URL),
            host=env.get("VIZBENCH_HOST", DEFAULT_HOST),
            port=int(env.get("VIZBENCH_PORT", str(DEFAULT_PORT))),
            rate_limit=int(env.get("VIZBENCH_RATE_LIMIT", str(DEFAULT_RATE_LIMIT))),
            cors_origins=origins or None,
            api_key=env.get("OPENAI_API_KEY"),
            llm_base_url=env.get("OPENAI_BASE_URL", DEFAULT_LLM_BASE_URL),
            generation_model=env.get("VIZBENCH_GENERATION_MODEL", DEFAULT_GENERATION_MODEL),
            vision_model=env.get("VIZBENCH_VISION_MODEL", DEFAULT_VISION_MODEL),
            llm_timeout=float(env.get("VIZBENCH_LLM_TIMEOUT", str(DEFAULT_LLM_TIMEOUT_SECONDS))),
            llm_max_concurrent=int(
                env.get("VIZBENCH_LLM_MAX_CONCURRENT", str(DEFAULT_LLM_MAX_CONCURRENT))
            ),
            similarity_concurrency=int(
                env.get("VIZBENCH_SIMILARITY_CONCURRENCY", str(DEFAULT_SIMILARITY_CONCURRENCY))
            ),
        )
