"""
Error hierarchy for schedule import and daily planning.

Only operations that cannot produce a usable result raise. Everything else
degrades gracefully:

- schedule strings that cannot be parsed are logged and skipped
- validation problems are collected into lists and returned
- lookups by id return None

Example:
    try:
        record = create_class_schedule(store, rows)
    except StructuralFailure as exc:
        print(exc.message)
"""

from __future__ import annotations


class PlannerError(Exception):
    """Base exception for all studyplanner errors."""

    severity = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def as_notification(self) -> tuple[str, str]:
        """Return the (message, severity) pair shown to the user."""
        return self.message, self.severity


class StructuralFailure(PlannerError):
    """The current operation cannot continue and nothing may be persisted.

    Examples: no courses in an import, no valid schedule data after parsing,
    unusable time-slot bounds, a failed save.
    """

    pass


class ScheduleNotFound(StructuralFailure):
    """A record that the caller requires to exist has vanished from the store."""

    def __init__(self, schedule_id: int) -> None:
        super().__init__(f"Schedule not found: {schedule_id}")
        self.schedule_id = schedule_id


class ScheduleValidationError(PlannerError):
    """User input failed validation.

    Carries the aggregated list of human-readable messages so the caller can
    show all of them at once.
    """

    severity = "warning"

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) if errors else "Invalid input")
        self.errors = list(errors)


class SpreadsheetError(PlannerError):
    """The workbook could not be read or does not look like a class schedule."""

    pass
