"""Application error taxonomy

Each error carries the HTTP status it maps to. Routes let these propagate;
the handler registered in ``app.main`` turns them into ``{"error": ...}``.
"""


class AppError(Exception):
    """Base class for errors that map onto an HTTP response"""
    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    """Missing or malformed caller input"""
    status_code = 400


class SignatureError(AppError):
    """Webhook payload failed signature verification"""
    status_code = 400


class UpstreamError(AppError):
    """Payment provider call failed or timed out"""
    status_code = 502


class PermissionDeniedError(AppError):
    """Caller lacks the paid status required for the operation"""
    status_code = 403


class NotFoundError(AppError):
    """No row matched an update"""
    status_code = 404
