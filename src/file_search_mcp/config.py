"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from file_search_mcp.bounding import MAX_CHARS, RESERVE_CHARS
from file_search_mcp.cache import (
    DEFAULT_MAX_ENTRIES,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    DEFAULT_TTL_SECONDS,
)

CONFIG_FILE_NAME = "file_search.toml"
DATA_DIR_NAME = ".file_search_mcp"

MAX_CHARS_CAP = 4_000_000
MAX_RESULTS_CAP = 100_000
MAX_FILES_CAP = 1_000_000
CACHE_MAX_ENTRIES_CAP = 10_000

DEFAULT_MAX_RESULTS = 1_000
DEFAULT_MAX_FILES = 10_000
DEFAULT_RIPGREP_TIMEOUT_SECONDS = 30.0

DEFAULT_EXCLUDES = (
    "node_modules",
    ".git",
    "dist",
    "build",
    "coverage",
    ".next",
    ".nuxt",
    "__pycache__",
    ".pytest_cache",
    "venv",
    ".venv",
    "target",
    "vendor",
    DATA_DIR_NAME,
)


@dataclass(slots=True, frozen=True)
class LimitsConfig:
    """Output budget and result-count ceilings."""

    max_chars: int = MAX_CHARS
    reserve_chars: int = RESERVE_CHARS
    max_results: int = DEFAULT_MAX_RESULTS
    max_files: int = DEFAULT_MAX_FILES


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """Query cache sizing and expiry."""

    enabled: bool = True
    ttl_seconds: float = DEFAULT_TTL_SECONDS
    max_entries: int = DEFAULT_MAX_ENTRIES
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS


@dataclass(slots=True, frozen=True)
class SearchConfig:
    """Matcher defaults."""

    default_excludes: tuple[str, ...] = DEFAULT_EXCLUDES
    ripgrep_timeout_seconds: float = DEFAULT_RIPGREP_TIMEOUT_SECONDS


@dataclass(slots=True, frozen=True)
class MetricsConfig:
    """Usage metrics toggle."""

    enabled: bool = True


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    root: Path
    data_dir: Path
    limits: LimitsConfig
    cache: CacheConfig
    search: SearchConfig
    metrics: MetricsConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "root": str(self.root),
            "data_dir": str(self.data_dir),
            "limits": {
                "max_chars": self.limits.max_chars,
                "reserve_chars": self.limits.reserve_chars,
                "max_results": self.limits.max_results,
                "max_files": self.limits.max_files,
            },
            "cache": {
                "enabled": self.cache.enabled,
                "ttl_seconds": self.cache.ttl_seconds,
                "max_entries": self.cache.max_entries,
                "sweep_interval_seconds": self.cache.sweep_interval_seconds,
            },
            "search": {
                "default_excludes": list(self.search.default_excludes),
                "ripgrep_timeout_seconds": self.search.ripgrep_timeout_seconds,
            },
            "metrics": {"enabled": self.metrics.enabled},
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    max_chars: int | None = None
    cache_enabled: bool | None = None
    cache_ttl_seconds: float | None = None
    cache_max_entries: int | None = None
    metrics_enabled: bool | None = None


def default_config(root: Path) -> ServerConfig:
    """Build default config for a given search root."""
    resolved_root = root.resolve()
    return ServerConfig(
        root=resolved_root,
        data_dir=resolved_root / DATA_DIR_NAME,
        limits=LimitsConfig(),
        cache=CacheConfig(),
        search=SearchConfig(),
        metrics=MetricsConfig(),
    )


def load_config_file(root: Path) -> dict[str, object]:
    """Load optional file_search.toml from the root."""
    config_path = root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{name}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{name}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_positive_int(value: object, name: str, default: int, cap: int | None) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _optional_positive_number(value: object, name: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"Config field '{name}' must be a positive number.")
    return float(value)


def _validated_limits(limits: LimitsConfig) -> LimitsConfig:
    if limits.reserve_chars >= limits.max_chars:
        raise ValueError("Config field 'limits.reserve_chars' must be < limits.max_chars.")
    return limits


def merge_config(
    base: ServerConfig, payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Merge defaults, file config, then CLI/startup overrides."""
    limits_payload = _get_table(payload, "limits")
    cache_payload = _get_table(payload, "cache")
    search_payload = _get_table(payload, "search")
    metrics_payload = _get_table(payload, "metrics")

    limits = LimitsConfig(
        max_chars=_optional_positive_int(
            limits_payload.get("max_chars"), "limits.max_chars", base.limits.max_chars, MAX_CHARS_CAP
        ),
        reserve_chars=_optional_positive_int(
            limits_payload.get("reserve_chars"),
            "limits.reserve_chars",
            base.limits.reserve_chars,
            None,
        ),
        max_results=_optional_positive_int(
            limits_payload.get("max_results"),
            "limits.max_results",
            base.limits.max_results,
            MAX_RESULTS_CAP,
        ),
        max_files=_optional_positive_int(
            limits_payload.get("max_files"), "limits.max_files", base.limits.max_files, MAX_FILES_CAP
        ),
    )
    cache = CacheConfig(
        enabled=_optional_bool(cache_payload.get("enabled"), "cache.enabled", base.cache.enabled),
        ttl_seconds=_optional_positive_number(
            cache_payload.get("ttl_seconds"), "cache.ttl_seconds", base.cache.ttl_seconds
        ),
        max_entries=_optional_positive_int(
            cache_payload.get("max_entries"),
            "cache.max_entries",
            base.cache.max_entries,
            CACHE_MAX_ENTRIES_CAP,
        ),
        sweep_interval_seconds=_optional_positive_number(
            cache_payload.get("sweep_interval_seconds"),
            "cache.sweep_interval_seconds",
            base.cache.sweep_interval_seconds,
        ),
    )

    default_excludes = base.search.default_excludes
    if "default_excludes" in search_payload:
        default_excludes = _tuple_of_strings(
            search_payload["default_excludes"], "search.default_excludes"
        )
    search = SearchConfig(
        default_excludes=default_excludes,
        ripgrep_timeout_seconds=_optional_positive_number(
            search_payload.get("ripgrep_timeout_seconds"),
            "search.ripgrep_timeout_seconds",
            base.search.ripgrep_timeout_seconds,
        ),
    )
    metrics = MetricsConfig(
        enabled=_optional_bool(
            metrics_payload.get("enabled"), "metrics.enabled", base.metrics.enabled
        )
    )

    merged = ServerConfig(
        root=base.root,
        data_dir=base.data_dir,
        limits=_validated_limits(limits),
        cache=cache,
        search=search,
        metrics=metrics,
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence."""
    limits = LimitsConfig(
        max_chars=_optional_positive_int(
            overrides.max_chars, "overrides.max_chars", config.limits.max_chars, MAX_CHARS_CAP
        ),
        reserve_chars=config.limits.reserve_chars,
        max_results=config.limits.max_results,
        max_files=config.limits.max_files,
    )
    cache = CacheConfig(
        enabled=_optional_bool(overrides.cache_enabled, "overrides.cache_enabled", config.cache.enabled),
        ttl_seconds=_optional_positive_number(
            overrides.cache_ttl_seconds, "overrides.cache_ttl_seconds", config.cache.ttl_seconds
        ),
        max_entries=_optional_positive_int(
            overrides.cache_max_entries,
            "overrides.cache_max_entries",
            config.cache.max_entries,
            CACHE_MAX_ENTRIES_CAP,
        ),
        sweep_interval_seconds=config.cache.sweep_interval_seconds,
    )
    metrics = MetricsConfig(
        enabled=_optional_bool(
            overrides.metrics_enabled, "overrides.metrics_enabled", config.metrics.enabled
        )
    )
    data_dir = overrides.data_dir or config.data_dir
    return ServerConfig(
        root=config.root,
        data_dir=data_dir.resolve(),
        limits=_validated_limits(limits),
        cache=cache,
        search=config.search,
        metrics=metrics,
    )


def load_effective_config(root: Path, overrides: CliOverrides | None = None) -> ServerConfig:
    """Load effective config using merge order defaults -> file config -> overrides."""
    resolved_root = root.resolve()
    base = default_config(resolved_root)
    payload = load_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
