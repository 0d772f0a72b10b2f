"""Exception hierarchy for the face recognition app.

Every error that can reach the user carries a ``user_message`` suitable for a
blocking notification in the viewfinder.
"""

from typing import Optional


class FaceAppError(Exception):
    """Base exception for all face recognition app errors."""

    default_user_message = "An error occurred. Please try again."

    def __init__(self, message: str, user_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message


class InputError(FaceAppError):
    """Raised when a registration name is missing."""

    default_user_message = "Please enter a name before registering!"


class DetectionEmptyError(FaceAppError):
    """Raised when no face could be found for registration."""

    default_user_message = "No face detected. Please try again."


class RegistryEmptyError(FaceAppError):
    """Raised when recognition is requested with no registered identities."""

    default_user_message = "Please register at least one face first!"


class SessionBusyError(FaceAppError):
    """Raised when an operation is not allowed while a session is running."""

    default_user_message = "Detection is running. Please wait until it finishes."


class DeviceError(FaceAppError):
    """Raised when the camera cannot be acquired."""

    default_user_message = "Please allow webcam access"


class StorageParseError(FaceAppError):
    """Raised when the persisted registry record cannot be parsed."""


class ModelLoadError(FaceAppError):
    """Raised when detector models or their library are unavailable."""

    default_user_message = "Face models could not be loaded."
