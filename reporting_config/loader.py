"""
Configuration Loader (``reporting_config.loader``).

Responsibility
--------------
Loads a programme YAML file and parses it into the frozen
``reporting_config.schema`` dataclasses.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel only for
its exception type; consumed by ``reporting_config.get_programme_config``
and by tests that need a custom programme.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Monetary caps are parsed as ``Decimal`` from their string form.
* Each category vocabulary contains the default category ("Others"), so
  switching classification can always reset to it.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or invalid keys  -> ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from reporting_config.schema import (
    DEFAULT_CATEGORY,
    FundingSourceDef,
    ProgrammeConfig,
    ProjectDef,
)
from reporting_kernel.exceptions import ConfigurationError
from reporting_kernel.utils.hashing import hash_payload


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ConfigurationError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any, field_name: str) -> Decimal:
    """Parse a monetary amount; floats are refused to avoid binary rounding."""
    if isinstance(value, float):
        raise ConfigurationError(
            f"{field_name} must be quoted or an integer, got float {value!r}"
        )
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(f"{field_name} is not a number: {value!r}") from None
    if not result.is_finite() or result < 0:
        raise ConfigurationError(f"{field_name} must be a non-negative amount: {value!r}")
    return result


def parse_funding_source(data: dict[str, Any]) -> FundingSourceDef:
    """
    Parse a ``FundingSourceDef`` from a dict.

    Raises:
        ConfigurationError: if ``code``, ``name`` or ``cap`` is missing.
    """
    try:
        code = str(data["code"])
        name = str(data["name"])
        cap = parse_decimal(data["cap"], f"funding_sources[{code}].cap")
    except KeyError as exc:
        raise ConfigurationError(f"funding source missing key {exc.args[0]!r}") from None

    recurring = data.get("sanctioned_recurring")
    one_time = data.get("sanctioned_one_time")
    expiry = data.get("expiry_date")
    return FundingSourceDef(
        code=code,
        name=name,
        cap=cap,
        sanctioned_recurring=(
            parse_decimal(recurring, f"{code}.sanctioned_recurring")
            if recurring is not None else None
        ),
        sanctioned_one_time=(
            parse_decimal(one_time, f"{code}.sanctioned_one_time")
            if one_time is not None else None
        ),
        expiry_date=parse_date(expiry) if expiry is not None else None,
        description=str(data.get("description", "")),
    )


def parse_project(data: dict[str, Any]) -> ProjectDef:
    """Parse a ``ProjectDef`` from a dict."""
    try:
        return ProjectDef(id=str(data["id"]), name=str(data["name"]))
    except KeyError as exc:
        raise ConfigurationError(f"project missing key {exc.args[0]!r}") from None


def _parse_vocabulary(values: Any, label: str, default_category: str) -> tuple[str, ...]:
    if not values:
        raise ConfigurationError(f"categories.{label} must not be empty")
    vocabulary = tuple(dict.fromkeys(str(v) for v in values))
    if default_category not in vocabulary:
        raise ConfigurationError(
            f"categories.{label} must contain the default category {default_category!r}"
        )
    return vocabulary


def parse_programme(data: dict[str, Any]) -> ProgrammeConfig:
    """
    Parse a full ``ProgrammeConfig`` from the top-level YAML dict.

    Raises:
        ConfigurationError: on missing sections, duplicate funding source
            codes, or vocabularies without the default category.
    """
    programme = data.get("programme") or {}
    sources_raw = data.get("funding_sources") or []
    if not sources_raw:
        raise ConfigurationError("at least one funding source is required")

    funding_sources = tuple(parse_funding_source(fs) for fs in sources_raw)
    codes = [fs.code for fs in funding_sources]
    if len(set(codes)) != len(codes):
        raise ConfigurationError(f"duplicate funding source codes: {codes}")

    categories = data.get("categories") or {}
    default_category = str(categories.get("default", DEFAULT_CATEGORY))

    projects = tuple(parse_project(p) for p in data.get("projects") or [])

    config = ProgrammeConfig(
        name=str(programme.get("name", "Programme")),
        currency=str(programme.get("currency", "INR")),
        funding_sources=funding_sources,
        recurring_categories=_parse_vocabulary(
            categories.get("recurring"), "recurring", default_category
        ),
        one_time_categories=_parse_vocabulary(
            categories.get("one_time"), "one_time", default_category
        ),
        projects=projects,
        default_category=default_category,
    )
    return replace(config, checksum=compute_checksum(config))


def load_programme(path: Path) -> ProgrammeConfig:
    """Load and parse a programme YAML file."""
    try:
        return parse_programme(load_yaml_file(path))
    except ConfigurationError as exc:
        raise ConfigurationError(str(exc), source=str(path)) from exc


def compute_checksum(config: ProgrammeConfig) -> str:
    """Deterministic SHA-256 over the parsed configuration."""
    return hash_payload(
        {
            "name": config.name,
            "currency": config.currency,
            "funding_sources": [
                {
                    "code": fs.code,
                    "name": fs.name,
                    "cap": fs.cap,
                    "sanctioned_recurring": fs.sanctioned_recurring,
                    "sanctioned_one_time": fs.sanctioned_one_time,
                    "expiry_date": fs.expiry_date,
                }
                for fs in config.funding_sources
            ],
            "recurring_categories": list(config.recurring_categories),
            "one_time_categories": list(config.one_time_categories),
            "projects": [{"id": p.id, "name": p.name} for p in config.projects],
            "default_category": config.default_category,
        }
    )
