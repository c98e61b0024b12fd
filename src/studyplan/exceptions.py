"""Custom exceptions for studyplan."""


class StudyPlanError(Exception):
    """Base exception for all studyplan errors."""

    pass


class ValidationError(StudyPlanError):
    """Raised when scheduling inputs or preferences are malformed."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a referenced task, event or block ID does not exist."""

    pass


class ParseError(StudyPlanError):
    """Raised when YAML parsing fails."""

    pass


class ScheduleConflictError(StudyPlanError):
    """Raised when a finished pass breaks the no-overlap invariant."""

    def __init__(self, message: str, conflicts: list[tuple[str, str]] | None = None):
        super().__init__(message)
        self.conflicts = conflicts or []


class InvalidTransitionError(StudyPlanError):
    """Raised when a drag gesture receives an event its state does not accept."""

    pass
