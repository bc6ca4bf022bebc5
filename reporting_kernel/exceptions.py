"""
Typed Exception Hierarchy for the Reporting Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the reporting engine (form handlers, the reviewer tooling, the
budget dashboards) need to distinguish "the amount you typed is not a
number" from "this month is already closed" without parsing messages.

Every exception therefore:
  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (period_id, raw value, ...)

Example:
    try:
        amount = parse_amount(raw)
    except InvalidAmountError as e:
        return {"error": e.code, "value": e.raw_value}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ReportingError (base)
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidCategoryError
    |   +-- InvalidPeriodicityError
    |   +-- UnknownFundingSourceError
    |   +-- MissingFieldError
    |   +-- InvalidFieldValueError
    |
    +-- PeriodError
    |   +-- PeriodNotFoundError
    |   +-- PeriodLockedError
    |   +-- FuturePeriodError
    |   +-- InvalidMonthLabelError
    |   +-- DuplicatePeriodError
    |
    +-- LedgerError
    |   +-- EntryNotFoundError
    |   +-- ScopeNotFoundError
    |
    +-- ConfigurationError
    |
    +-- SnapshotError
        +-- SnapshotNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                    | When Raised
--------------|-------------------------|------------------------------------------
Validation    | INVALID_AMOUNT          | Amount unparsable, non-finite or negative
              | INVALID_CATEGORY        | Category not in the classification vocabulary
              | INVALID_PERIODICITY     | Unknown periodicity label
              | UNKNOWN_FUNDING_SOURCE  | Funding source not configured
              | MISSING_FIELD           | Required input field empty
              | INVALID_FIELD_VALUE     | Enum-like field outside its allowed values
--------------|-------------------------|------------------------------------------
Period        | PERIOD_NOT_FOUND        | No period with the given id
              | PERIOD_LOCKED           | Deadline passed; period is read-only
              | FUTURE_PERIOD           | Month has not started yet
              | INVALID_MONTH_LABEL     | "October 2023"-style label unparsable
              | DUPLICATE_PERIOD        | Two periods for the same calendar month
--------------|-------------------------|------------------------------------------
Ledger        | ENTRY_NOT_FOUND         | Unknown expense/milestone id or point index
              | SCOPE_NOT_FOUND         | Project ledger absent from the period
--------------|-------------------------|------------------------------------------
Config        | CONFIGURATION_ERROR     | Programme YAML malformed
--------------|-------------------------|------------------------------------------
Snapshot      | SNAPSHOT_NOT_FOUND      | No persisted snapshot to load

Domain and engine code raises these.  ``ReportingService.mutate`` converts
validation, period and ledger errors into a ``MutationResult`` status
(REJECTED, DISALLOWED, NOT_FOUND) so that no failure is fatal to the caller.
"""


class ReportingError(Exception):
    """
    Base exception for all reporting kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "REPORTING_ERROR"


# Validation exceptions


class ValidationError(ReportingError):
    """Base exception for rejected mutation input."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount could not be parsed into a finite, non-negative Decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, raw_value: object, reason: str):
        self.raw_value = str(raw_value)
        self.reason = reason
        super().__init__(f"Invalid amount {raw_value!r}: {reason}")


class InvalidCategoryError(ValidationError):
    """Category is not part of the vocabulary for the classification."""

    code: str = "INVALID_CATEGORY"

    def __init__(self, category: str, classification: str):
        self.category = category
        self.classification = classification
        super().__init__(
            f"Category {category!r} is not valid for {classification} expenses"
        )


class InvalidPeriodicityError(ValidationError):
    """Periodicity label is not Monthly, Quarterly or Yearly."""

    code: str = "INVALID_PERIODICITY"

    def __init__(self, periodicity: str):
        self.periodicity = periodicity
        super().__init__(f"Unknown periodicity: {periodicity!r}")


class UnknownFundingSourceError(ValidationError):
    """Funding source is not one of the configured channels."""

    code: str = "UNKNOWN_FUNDING_SOURCE"

    def __init__(self, funding_source: str):
        self.funding_source = funding_source
        super().__init__(f"Unknown funding source: {funding_source!r}")


class MissingFieldError(ValidationError):
    """A required input field is empty."""

    code: str = "MISSING_FIELD"

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Required field is empty: {field_name}")


class InvalidFieldValueError(ValidationError):
    """A field holds a value outside its allowed set (classification, section, date)."""

    code: str = "INVALID_FIELD_VALUE"

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = str(value)
        super().__init__(f"Invalid value for {field_name}: {value!r}")


# Period exceptions


class PeriodError(ReportingError):
    """Base exception for reporting-period errors."""

    code: str = "PERIOD_ERROR"


class PeriodNotFoundError(PeriodError):
    """No reporting period with the given id."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Reporting period not found: {period_id}")


class PeriodLockedError(PeriodError):
    """The period's submission deadline has passed."""

    code: str = "PERIOD_LOCKED"

    def __init__(self, period_id: str, deadline: str):
        self.period_id = period_id
        self.deadline = deadline
        super().__init__(
            f"Reporting period {period_id} is locked (deadline {deadline})"
        )


class FuturePeriodError(PeriodError):
    """The period's month has not started yet."""

    code: str = "FUTURE_PERIOD"

    def __init__(self, period_id: str, opens_on: str):
        self.period_id = period_id
        self.opens_on = opens_on
        super().__init__(
            f"Reporting period {period_id} opens for editing on {opens_on}"
        )


class InvalidMonthLabelError(PeriodError):
    """Month label is not of the form 'October 2023'."""

    code: str = "INVALID_MONTH_LABEL"

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Cannot parse month label: {label!r}")


class DuplicatePeriodError(PeriodError):
    """Two reporting periods cover the same calendar month."""

    code: str = "DUPLICATE_PERIOD"

    def __init__(self, month_label: str):
        self.month_label = month_label
        super().__init__(f"More than one reporting period for {month_label}")


# Ledger exceptions


class LedgerError(ReportingError):
    """Base exception for ledger lookups."""

    code: str = "LEDGER_ERROR"


class EntryNotFoundError(LedgerError):
    """Unknown expense id, milestone id, or point index."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, period_id: str, entry_ref: str):
        self.period_id = period_id
        self.entry_ref = entry_ref
        super().__init__(f"Entry {entry_ref} not found in period {period_id}")


class ScopeNotFoundError(LedgerError):
    """The project ledger does not exist in the period."""

    code: str = "SCOPE_NOT_FOUND"

    def __init__(self, period_id: str, project_id: str):
        self.period_id = period_id
        self.project_id = project_id
        super().__init__(
            f"Project {project_id} has no ledger in period {period_id}"
        )


# Configuration exceptions


class ConfigurationError(ReportingError):
    """Programme configuration could not be parsed."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message if source is None else f"{source}: {message}")


# Snapshot exceptions


class SnapshotError(ReportingError):
    """Base exception for snapshot persistence."""

    code: str = "SNAPSHOT_ERROR"


class SnapshotNotFoundError(SnapshotError):
    """No snapshot has been persisted yet."""

    code: str = "SNAPSHOT_NOT_FOUND"

    def __init__(self, store_key: str):
        self.store_key = store_key
        super().__init__(f"No snapshot persisted for {store_key}")
