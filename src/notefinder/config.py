"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from notefinder.errors import ConfigurationError
from notefinder.models import SearchMode
from notefinder.utils.files import DEFAULT_IGNORE_PATTERNS

DEFAULT_CACHE_DIR = Path(".notefinder-cache")
VECTOR_SNAPSHOT_NAME = "vectors.json"

_WEIGHT_TOLERANCE = 1e-3


class ProviderName(str, Enum):
    LOCAL = "local"
    OPENAI = "openai"
    COHERE = "cohere"


API_KEY_ENV = {
    ProviderName.OPENAI: "OPENAI_API_KEY",
    ProviderName.COHERE: "COHERE_API_KEY",
}


def _default_knowledge_paths() -> List[Path]:
    home = Path.home()
    return [home / "Documents" / "notes", home / "Projects" / "docs"]


def _expand_path(value: str | Path) -> Path:
    return Path(os.path.expanduser(str(value))).resolve()


def _coerce_enum(enum_type: type[Enum], value: Any, label: str) -> Any:
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(f"Unknown {label}: {value!r} (expected one of {allowed})") from exc


@dataclass(slots=True)
class SemanticConfig:
    enabled: bool = False
    provider: ProviderName = ProviderName.LOCAL
    model: str | None = None
    api_key: str | None = None
    cache_embeddings: bool = True
    batch_size: int | None = None

    def __post_init__(self) -> None:
        self.provider = _coerce_enum(ProviderName, self.provider, "embedding provider")

    def resolve_api_key(self) -> str | None:
        """Explicit key first, then the provider's environment variable."""
        if self.api_key:
            return self.api_key
        env_name = API_KEY_ENV.get(self.provider)
        return os.getenv(env_name) if env_name else None


@dataclass(slots=True)
class HybridConfig:
    keyword_weight: float = 0.7
    semantic_weight: float = 0.3

    def normalized(self) -> tuple[float, float]:
        """Return ``(keyword_weight, semantic_weight)`` scaled to sum to 1."""
        total = self.keyword_weight + self.semantic_weight
        if total <= 0:
            raise ConfigurationError("Hybrid weights must sum to a positive value")
        if abs(total - 1) > _WEIGHT_TOLERANCE:
            return self.keyword_weight / total, self.semantic_weight / total
        return self.keyword_weight, self.semantic_weight


@dataclass(slots=True)
class AppConfig:
    knowledge_paths: List[Path] = field(default_factory=_default_knowledge_paths)
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    max_file_size_mb: float = 10
    max_results: int = 20
    default_mode: SearchMode = SearchMode.KEYWORD
    chunk_size: int = 800
    chunk_overlap: int = 100
    cache_dir: Path = DEFAULT_CACHE_DIR
    semantic: SemanticConfig = field(default_factory=SemanticConfig)
    hybrid: HybridConfig = field(default_factory=HybridConfig)

    def __post_init__(self) -> None:
        self.default_mode = _coerce_enum(SearchMode, self.default_mode, "search mode")
        self.cache_dir = Path(self.cache_dir)

    def resolve_cache_path(self, base_dir: Path | None = None) -> Path:
        """Location of the vector store snapshot."""
        cache_dir = Path(os.path.expanduser(str(self.cache_dir)))
        if not cache_dir.is_absolute() and base_dir is not None:
            cache_dir = base_dir / cache_dir
        return cache_dir / VECTOR_SNAPSHOT_NAME

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "AppConfig":
        """Build a config by merging a partial mapping over the defaults.

        Nested ``semantic`` and ``hybrid`` sections are merged key by key;
        unknown keys are rejected.
        """
        config = cls()
        if not data:
            return config

        known = {item.name for item in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        for key, value in data.items():
            if key == "semantic":
                config.semantic = _merge_section(config.semantic, value, "semantic")
            elif key == "hybrid":
                config.hybrid = _merge_section(config.hybrid, value, "hybrid")
            elif key == "knowledge_paths":
                config.knowledge_paths = [_expand_path(item) for item in value if isinstance(item, (str, Path))]
            elif key == "ignore_patterns":
                config.ignore_patterns = [item for item in value if isinstance(item, str)]
            else:
                setattr(config, key, value)

        config.__post_init__()
        return config


def _merge_section(current: Any, value: Any, name: str) -> Any:
    if value is None:
        return current
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section {name!r} must be a mapping")

    section_type = type(current)
    merged: Dict[str, Any] = {item.name: getattr(current, item.name) for item in fields(section_type)}
    unknown = set(value) - set(merged)
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in {name!r} section: {', '.join(sorted(unknown))}"
        )
    merged.update(value)
    return section_type(**merged)


def load_config(path: Path | None = None) -> AppConfig:
    """Load an :class:`AppConfig` from a YAML file, or defaults when ``path`` is None."""
    if path is None:
        return AppConfig()

    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid configuration file {path}: {exc}") from exc

    if raw is not None and not isinstance(raw, Mapping):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return AppConfig.from_mapping(raw)
