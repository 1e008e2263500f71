"""Build the search engine for a :class:`SearchMode`."""

from __future__ import annotations

from pathlib import Path

from notefinder.config import AppConfig
from notefinder.errors import ConfigurationError
from notefinder.models import SearchMode
from notefinder.search.engine import SearchEngine
from notefinder.search.hybrid import HybridSearchEngine
from notefinder.search.keyword import KeywordSearchEngine
from notefinder.search.semantic import SemanticSearchEngine


def parse_search_mode(value: SearchMode | str) -> SearchMode:
    if isinstance(value, SearchMode):
        return value
    try:
        return SearchMode(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(mode.value for mode in SearchMode)
        raise ConfigurationError(f"Unknown search mode: {value!r} (expected one of {allowed})") from exc


def create_search_engine(
    config: AppConfig,
    mode: SearchMode | str | None = None,
    *,
    base_dir: Path | None = None,
    semantic_engine: SemanticSearchEngine | None = None,
) -> SearchEngine:
    """Construct the engine for ``mode`` (``config.default_mode`` when omitted).

    Semantic and hybrid modes fail here when semantic search is disabled or
    the configured provider has no credentials. An existing
    ``semantic_engine`` is reused by both modes instead of building a new one.
    """
    selected = parse_search_mode(mode if mode is not None else config.default_mode)

    match selected:
        case SearchMode.KEYWORD:
            return KeywordSearchEngine()
        case SearchMode.SEMANTIC:
            return semantic_engine or SemanticSearchEngine(config, base_dir=base_dir)
        case SearchMode.HYBRID:
            return HybridSearchEngine(
                config,
                semantic_engine=semantic_engine or SemanticSearchEngine(config, base_dir=base_dir),
            )
        case _:
            raise ConfigurationError(f"Unsupported search mode: {selected!r}")
