"""tx configuration loading and validation."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Self

from tx.core.constants import (
    DEFAULT_ALIAS_FIELDS,
    DEFAULT_ALIAS_THRESHOLD,
    DEFAULT_EXTRACTOR_MAX_RETRIES,
    DEFAULT_EXTRACTOR_RETRY_DELAY_SECONDS,
    DEFAULT_EXTRACTOR_TIMEOUT_SECONDS,
    DEFAULT_GRAPH_MAX_DEPTH,
    DEFAULT_MAX_FIELD_SAMPLES,
    DEFAULT_PROVIDER,
    DEFAULT_STATS_WINDOW_DAYS,
    DEFAULT_TEMPLATE_MIN_MATCHES,
    get_config_path,
)
from tx.core.exceptions import ConfigurationError
from tx.core.fileio import atomic_write_text

SUPPORTED_PROVIDERS: tuple[str, ...] = ("openai", "local", "none")


@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI-compatible hosted provider (OpenRouter and friends)."""

    base_url: str = "https://openrouter.ai/api/v1"
    api_key: str = "your-api-key-here"
    model: str = "anthropic/claude-3.5-sonnet"


@dataclass(frozen=True)
class LocalConfig:
    """Local OpenAI-compatible server (Ollama, LM Studio)."""

    base_url: str = "http://localhost:11434/v1"
    model: str = "llama3.2"
    api_key: str | None = None


@dataclass(frozen=True)
class ExtractorConfig:
    """Semantic extractor call settings."""

    timeout_seconds: float = DEFAULT_EXTRACTOR_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_EXTRACTOR_MAX_RETRIES
    retry_delay_seconds: float = DEFAULT_EXTRACTOR_RETRY_DELAY_SECONDS
    temperature: float = 0.0


@dataclass(frozen=True)
class IndexConfig:
    """Semantic index tuning."""

    max_field_samples: int = DEFAULT_MAX_FIELD_SAMPLES
    alias_threshold: float = DEFAULT_ALIAS_THRESHOLD
    alias_fields: tuple[str, ...] = DEFAULT_ALIAS_FIELDS
    template_min_matches: int = DEFAULT_TEMPLATE_MIN_MATCHES

    def __post_init__(self) -> None:
        if isinstance(self.alias_fields, list):
            object.__setattr__(self, "alias_fields", tuple(self.alias_fields))


@dataclass(frozen=True)
class StatsConfig:
    """Statistics settings."""

    window_days: int = DEFAULT_STATS_WINDOW_DAYS


@dataclass(frozen=True)
class GraphConfig:
    """Dependency graph traversal settings."""

    max_depth: int = DEFAULT_GRAPH_MAX_DEPTH


@dataclass(frozen=True)
class TxConfig:
    """Complete tx configuration."""

    version: str = "1.0"
    provider: str = DEFAULT_PROVIDER
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    local: LocalConfig = field(default_factory=LocalConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    index: IndexConfig = field(default_factory=IndexConfig)
    stats: StatsConfig = field(default_factory=StatsConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)

    def __post_init__(self) -> None:
        if self.provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown provider '{self.provider}', expected one of {', '.join(SUPPORTED_PROVIDERS)}"
            )
        if self.stats.window_days < 1:
            raise ValueError("stats.window_days must be at least 1")
        if self.index.max_field_samples < 1:
            raise ValueError("index.max_field_samples must be at least 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from dictionary."""
        return cls(
            version=data.get("version", "1.0"),
            provider=data.get("provider", DEFAULT_PROVIDER),
            openai=OpenAIConfig(**data.get("openai", {})),
            local=LocalConfig(**data.get("local", {})),
            extractor=ExtractorConfig(**data.get("extractor", {})),
            index=IndexConfig(**data.get("index", {})),
            stats=StatsConfig(**data.get("stats", {})),
            graph=GraphConfig(**data.get("graph", {})),
        )

    @classmethod
    def load(cls, base_path: Path | None = None) -> Self:
        """Load configuration from file or use defaults."""
        config_path = get_config_path(base_path)

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return cls.from_dict(data)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {e}",
                details={"path": str(config_path)},
            ) from e
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid configuration values: {e}",
                details={"path": str(config_path)},
            ) from e

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "version": self.version,
            "provider": self.provider,
            "openai": {
                "base_url": self.openai.base_url,
                "api_key": self.openai.api_key,
                "model": self.openai.model,
            },
            "local": {
                "base_url": self.local.base_url,
                "model": self.local.model,
                "api_key": self.local.api_key,
            },
            "extractor": {
                "timeout_seconds": self.extractor.timeout_seconds,
                "max_retries": self.extractor.max_retries,
                "retry_delay_seconds": self.extractor.retry_delay_seconds,
                "temperature": self.extractor.temperature,
            },
            "index": {
                "max_field_samples": self.index.max_field_samples,
                "alias_threshold": self.index.alias_threshold,
                "alias_fields": list(self.index.alias_fields),
                "template_min_matches": self.index.template_min_matches,
            },
            "stats": {
                "window_days": self.stats.window_days,
            },
            "graph": {
                "max_depth": self.graph.max_depth,
            },
        }

    def save(self, base_path: Path | None = None) -> Path:
        """Save configuration to file and return its path."""
        config_path = get_config_path(base_path)
        atomic_write_text(config_path, json.dumps(self.to_dict(), indent=2) + "\n")
        return config_path
