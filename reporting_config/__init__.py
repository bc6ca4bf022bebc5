"""
reporting_config -- single public entrypoint for programme configuration.

Responsibility:
    Provides the ONLY way to obtain the programme configuration at runtime
    through ``get_programme_config()``: funding channels and their caps,
    category vocabularies, and the project registry.

Architecture position:
    Configuration -- YAML-driven.  Sits above ``reporting_kernel`` and below
    ``reporting_engines`` / ``reporting_modules``.  The kernel MUST NEVER
    import from ``reporting_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ConfigurationError`` -- the YAML is structurally invalid.

Audit relevance:
    Every load emits a ``REPORTING_CONFIG_TRACE`` log entry with the
    programme name and checksum, tying each budget view back to the exact
    caps that governed it.
"""

from __future__ import annotations

from pathlib import Path

from reporting_config.loader import compute_checksum, load_programme, parse_programme
from reporting_config.schema import (
    DEFAULT_CATEGORY,
    FundingSourceDef,
    ProgrammeConfig,
    ProjectDef,
)
from reporting_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "programme.yaml"

_cache: dict[Path, ProgrammeConfig] = {}


def get_programme_config(path: Path | str | None = None) -> ProgrammeConfig:
    """
    Load (and cache) the programme configuration.

    Args:
        path: YAML file to load.  Defaults to the packaged programme file.
    """
    resolved = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = _cache.get(resolved)
    if config is None:
        config = load_programme(resolved)
        _cache[resolved] = config
        _logger.info(
            "REPORTING_CONFIG_TRACE",
            extra={
                "trace_type": "REPORTING_CONFIG_TRACE",
                "programme": config.name,
                "checksum": config.checksum,
                "funding_sources": list(config.funding_source_codes),
                "project_count": len(config.projects),
                "source_path": str(resolved),
            },
        )
    return config


def clear_config_cache() -> None:
    """Forget cached configurations. FOR TESTING ONLY."""
    _cache.clear()


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_CONFIG_PATH",
    "FundingSourceDef",
    "ProgrammeConfig",
    "ProjectDef",
    "clear_config_cache",
    "compute_checksum",
    "get_programme_config",
    "load_programme",
    "parse_programme",
]
