class NotFoundError(LookupError):
    """Base class for missing records."""
    pass


class AssessmentNotFoundError(NotFoundError):
    pass


class UserNotFoundError(NotFoundError):
    pass


class ResultNotFoundError(NotFoundError):
    pass


class ContentNotFoundError(NotFoundError):
    pass


class ContentLockedError(PermissionError):
    """Raised when locked content is requested without a registered user."""
    pass


class InvalidSubmissionError(ValueError):
    """Raised when a submission does not line up with the assessment (e.g. wrong answer count)."""
    pass


class UserAlreadyExistsError(ValueError):
    pass


class InvalidCredentialsError(ValueError):
    pass
