"""Error taxonomy shared by the services and mapped to HTTP answers in app.main"""


class TrackerError(Exception):
    """Base exception for the task tracker"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(TrackerError):
    """Bad input shape or length"""
    status_code = 400


class LegacyAccountError(TrackerError):
    """Account created before password support"""
    status_code = 400

    def __init__(self, message: str = "This account needs password setup. Please contact admin."):
        super().__init__(message)


class AuthenticationError(TrackerError):
    """Wrong password or access code"""
    status_code = 401


class PermissionDeniedError(TrackerError):
    status_code = 403


class NotFoundError(TrackerError):
    status_code = 404


class ConflictError(TrackerError):
    """Concurrent duplicate registration with a different password"""
    status_code = 409


class StorageError(TrackerError):
    """Underlying persistence failure"""
    status_code = 500
