class BriefStudioError(Exception):
    """Base exception for the brief lifecycle core."""

    pass


class ValidationError(BriefStudioError):
    """Raised when a required field is missing or malformed before an operation."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class IllegalTransition(BriefStudioError):
    """Raised when an action is not permitted from the brief's current status."""

    def __init__(self, action: str, status: str):
        self.action = str(action)
        self.status = str(status)
        super().__init__(f"Action '{self.action}' is not allowed while brief is '{self.status}'")


class PersistenceError(BriefStudioError):
    """Raised when a persistence gateway call fails.

    Local state is left untouched so the same operation can be retried.
    """

    def __init__(self, operation: str, cause: Exception | str | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Persistence operation '{operation}' failed{detail}")


class SuggestionUnavailable(BriefStudioError):
    """Raised when a suggestion or summary could not be produced."""

    def __init__(self, question_id: str | None = None, reason: str = ""):
        self.question_id = question_id
        self.reason = reason
        target = f"question '{question_id}'" if question_id else "brief summary"
        super().__init__(f"No suggestion available for {target}" + (f": {reason}" if reason else ""))


class BriefNotFound(BriefStudioError):
    """Raised when a brief or draft id does not resolve to a record."""

    def __init__(self, brief_id: str):
        self.brief_id = brief_id
        super().__init__(f"Brief '{brief_id}' not found")
