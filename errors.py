class LeadQuizError(Exception):
    """Base class for lead quiz failures."""


class MissingFieldError(LeadQuizError):
    """Raised when a required lead field is absent or blank."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required field: {field}")


class QuizStateError(LeadQuizError):
    """Raised when a quiz operation is invoked from the wrong step."""


class ReceiverError(LeadQuizError):
    """Raised by the webhook receiver when a posted lead cannot be stored."""
