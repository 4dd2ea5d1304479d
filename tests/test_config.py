"""Unit tests for vizbench.config module."""

from pathlib import Path

import pytest

from vizbench.config import VizbenchConfig
from vizbench.constants import (
    DEFAULT_DEMO_BASE_URL,
    DEFAULT_GENERATION_MODEL,
    DEFAULT_HOST,
    DEFAULT_LLM_BASE_URL,
    DEFAULT_PORT,
    DEFAULT_RATE_LIMIT,
    DEFAULT_SIMILARITY_CONCURRENCY,
    DEFAULT_VISION_MODEL,
    DEFAULT_WORKSPACE_ROOT,
)

ENV_VARS = (
    "VIZBENCH_WORKSPACE_ROOT",
    "VIZBENCH_DEMO_BASE_URL",
    "VIZBENCH_HOST",
    "VIZBENCH_PORT",
    "VIZBENCH_RATE_LIMIT",
    "VIZBENCH_CORS_ORIGINS",
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "VIZBENCH_GENERATION_MODEL",
    "VIZBENCH_VISION_MODEL",
    "VIZBENCH_LLM_TIMEOUT",
    "VIZBENCH_LLM_MAX_CONCURRENT",
    "VIZBENCH_SIMILARITY_CONCURRENCY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVizbenchConfig:
    """Tests for VizbenchConfig dataclass."""

    @pytest.mark.unit
    def test_default_values(self):
        """Config defaults should match documented values."""
        config = VizbenchConfig()
        assert config.workspace_root == str(DEFAULT_WORKSPACE_ROOT)
        assert config.demo_base_url == DEFAULT_DEMO_BASE_URL
        assert config.host == DEFAULT_HOST
        assert config.port == DEFAULT_PORT
        assert config.rate_limit == DEFAULT_RATE_LIMIT
        assert config.cors_origins is None
        assert config.api_key is None
        assert config.llm_base_url == DEFAULT_LLM_BASE_URL
        assert config.generation_model == DEFAULT_GENERATION_MODEL
        assert config.vision_model == DEFAULT_VISION_MODEL
        assert config.similarity_concurrency == DEFAULT_SIMILARITY_CONCURRENCY

    @pytest.mark.unit
    def test_workspace_path(self, tmp_path):
        config = VizbenchConfig(workspace_root=str(tmp_path))
        assert config.workspace_path == Path(tmp_path)

    @pytest.mark.unit
    def test_trailing_slashes_stripped(self):
        config = VizbenchConfig(
            llm_base_url="https://llm.example.com/v1/",
            demo_base_url="http://localhost:5500/",
        )
        assert config.llm_base_url == "https://llm.example.com/v1"
        assert config.demo_base_url == "http://localhost:5500"

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"port": 0},
            {"port": 70000},
            {"rate_limit": 0},
            {"llm_timeout": 0},
            {"llm_max_concurrent": 0},
            {"similarity_concurrency": 0},
            {"demo_base_url": "file:///tmp"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            VizbenchConfig(**kwargs)

    @pytest.mark.unit
    def test_from_env_defaults(self, clean_env):
        """from_env with no env vars should return defaults."""
        config = VizbenchConfig.from_env()
        assert config.port == DEFAULT_PORT
        assert config.api_key is None
        assert config.cors_origins is None

    @pytest.mark.unit
    def test_from_env_custom(self, clean_env, tmp_path):
        clean_env.setenv("VIZBENCH_WORKSPACE_ROOT", str(tmp_path))
        clean_env.setenv("VIZBENCH_PORT", "8123")
        clean_env.setenv("VIZBENCH_RATE_LIMIT", "10")
        clean_env.setenv("VIZBENCH_CORS_ORIGINS", "http://a.test, http://b.test,")
        clean_env.setenv("OPENAI_API_KEY", "sk-abc")
        clean_env.setenv("VIZBENCH_GENERATION_MODEL", "gpt-4o")
        clean_env.setenv("VIZBENCH_SIMILARITY_CONCURRENCY", "6")

        config = VizbenchConfig.from_env()
        assert config.workspace_path == tmp_path
        assert config.port == 8123
        assert config.rate_limit == 10
        assert config.cors_origins == ["http://a.test", "http://b.test"]
        assert config.api_key == "sk-abc"
        assert config.generation_model == "gpt-4o"
        assert config.similarity_concurrency == 6

    @pytest.mark.unit
    def test_from_env_invalid_port(self, clean_env):
        clean_env.setenv("VIZBENCH_PORT", "not-a-port")
        with pytest.raises(ValueError):
            VizbenchConfig.from_env()
