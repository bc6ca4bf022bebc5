"""
ProgrammeConfig schema.

The human-authored, reviewable programme configuration: which funding
channels exist and how much each has sanctioned, which expense categories
may be used for recurring (RE) and one-time (NRE) spend, and which
projects the startup reports on.  YAML files are parsed into these types
by ``reporting_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

DEFAULT_CATEGORY = "Others"


@dataclass(frozen=True)
class FundingSourceDef:
    """A funding channel and its sanctioned caps."""

    code: str  # short name used on expense entries, e.g. "DST"
    name: str
    cap: Decimal
    sanctioned_recurring: Decimal | None = None
    sanctioned_one_time: Decimal | None = None
    expiry_date: date | None = None
    description: str = ""


@dataclass(frozen=True)
class ProjectDef:
    """An entry of the project registry (id -> display name)."""

    id: str
    name: str


@dataclass(frozen=True)
class ProgrammeConfig:
    """Complete programme configuration."""

    name: str
    currency: str
    funding_sources: tuple[FundingSourceDef, ...]
    recurring_categories: tuple[str, ...]
    one_time_categories: tuple[str, ...]
    projects: tuple[ProjectDef, ...] = ()
    default_category: str = DEFAULT_CATEGORY
    checksum: str = field(default="", compare=False)

    @property
    def funding_source_codes(self) -> tuple[str, ...]:
        return tuple(fs.code for fs in self.funding_sources)

    @property
    def default_funding_source(self) -> str:
        return self.funding_sources[0].code

    @property
    def caps(self) -> dict[str, Decimal]:
        """Funding-cap table: funding source code -> cap."""
        return {fs.code: fs.cap for fs in self.funding_sources}

    @property
    def project_names(self) -> dict[str, str]:
        """Project registry: project id -> display name."""
        return {p.id: p.name for p in self.projects}

    def funding_source(self, code: str) -> FundingSourceDef | None:
        for fs in self.funding_sources:
            if fs.code == code:
                return fs
        return None
