"""Domain errors raised by the service layer.

The web layer maps each class to an HTTP status in one place
(see examprep.web.api); the CLI prints the message.
"""


class ExamPrepError(Exception):
    """Base class for service-layer errors."""

    pass


class NotFoundError(ExamPrepError):
    """Requested entity does not exist (or is hidden from the caller)."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class ConflictError(ExamPrepError):
    """Entity clashes with an existing one (e.g. duplicate display name)."""

    pass


class ValidationError(ExamPrepError):
    """Input is well-formed JSON but breaks a domain rule."""

    pass


class AuthenticationError(ExamPrepError):
    """Missing or invalid credentials."""

    pass


class PermissionDeniedError(ExamPrepError):
    """Caller is authenticated but not allowed to do this."""

    pass


class PremiumRequiredError(ExamPrepError):
    """Feature or material reserved to premium members."""

    pass


class DailyLimitReachedError(ExamPrepError):
    """Free users already used today's challenge."""

    def __init__(self, message: str = "Daily challenge limit reached. Come back tomorrow!"):
        super().__init__(message)
