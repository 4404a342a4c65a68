"""
Custom exceptions for the application.
"""


class DictationException(Exception):
    """Base exception for the dictation backend."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


# ═══════════════════════════════════════════════════════════════════════════
# INPUT VALIDATION EXCEPTIONS (400)
# ═══════════════════════════════════════════════════════════════════════════


class InputValidationError(DictationException):
    """Raised when the request input is missing or malformed."""
    pass


class EmptyInputError(InputValidationError):
    """Raised when the transcript to structure is empty."""

    def __init__(self, message: str = "No transcript content to process"):
        super().__init__(message)


class MissingAudioError(InputValidationError):
    """Raised when no audio file was uploaded."""

    def __init__(self, message: str = "No audio file provided"):
        super().__init__(message)


class PayloadTooLargeError(InputValidationError):
    """Raised when an upload exceeds the size limit."""

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(f"File size exceeds {limit_bytes // (1024 * 1024)}MB")


class UnsupportedFormatError(InputValidationError):
    """Raised when an upload is neither an allowed MIME type nor extension."""

    def __init__(self, mime_type: str | None):
        self.mime_type = mime_type
        super().__init__(f"Unsupported file format ({mime_type})")


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURATION EXCEPTIONS (500)
# ═══════════════════════════════════════════════════════════════════════════


class ConfigurationError(DictationException):
    """Raised when a required provider key is not configured."""
    pass


# ═══════════════════════════════════════════════════════════════════════════
# EXTERNAL API EXCEPTIONS (500)
# ═══════════════════════════════════════════════════════════════════════════


class ExternalAPIError(DictationException):
    """Raised when an external API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SpeechToTextError(ExternalAPIError):
    """Raised when the speech-to-text provider fails."""

    def __init__(self, status_code: int | None = None, message: str | None = None):
        if message is None:
            message = f"Whisper API error ({status_code})"
        super().__init__(message, status_code=status_code)


class StructuringError(ExternalAPIError):
    """Raised when the structuring provider fails."""

    def __init__(self, status_code: int | None = None, message: str | None = None):
        if message is None:
            message = f"Claude API error: {status_code}"
        super().__init__(message, status_code=status_code)
