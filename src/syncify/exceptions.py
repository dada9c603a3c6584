"""Unified exception hierarchy for syncify."""


class SyncifyError(Exception):
    """Base exception for all syncify errors."""


# Extraction
class ExtractionError(SyncifyError):
    """Base exception for message extraction."""


class PayloadParseError(ExtractionError):
    """A request body, response body or socket frame could not be parsed."""


# Validation
class ValidationError(SyncifyError):
    """Base exception for validation failures."""


class MessageValidationError(ValidationError):
    """A message has a missing/unknown role or empty content."""


class ProfileValidationError(ValidationError):
    """A context profile has an unexpected shape."""


# Redaction
class RedactionError(SyncifyError):
    """Base exception for redaction operations."""


class RedactionPatternError(RedactionError):
    """A redaction pattern could not be compiled."""


# Collaborators
class CollaboratorError(SyncifyError):
    """Base exception for capture/profile/event collaborator failures."""


class CaptureError(CollaboratorError):
    """The capture sink rejected or failed to store a conversation."""


class ProfileFetchError(CollaboratorError):
    """Failed to fetch a context profile."""


class EventLogError(CollaboratorError):
    """Failed to record a telemetry event."""
