"""
Error taxonomy shared by the auth, permission and schedule services.

Every error carries a stable ``kind`` tag next to its human-readable message so
the API layer can render ``{"detail": ..., "kind": ...}`` without string matching.
"""


class ShopFloorError(Exception):
    kind = "error"
    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind}


class InvalidCredentials(ShopFloorError):
    # Same text for unknown username and wrong password
    kind = "invalid_credentials"
    status_code = 401
    default_message = "Invalid username or password"


class InvalidSession(ShopFloorError):
    kind = "invalid_session"
    status_code = 401
    default_message = "Invalid or expired session"


class SessionExpired(ShopFloorError):
    kind = "session_expired"
    status_code = 401
    default_message = "Session expired"


class UserNotFound(ShopFloorError):
    kind = "user_not_found"
    status_code = 401
    default_message = "User not found or inactive"


class WrongPassword(ShopFloorError):
    kind = "wrong_password"
    status_code = 400
    default_message = "Current password is incorrect"


class PermissionDenied(ShopFloorError):
    kind = "permission_denied"
    status_code = 403

    def __init__(self, required: list[str], actual: str):
        self.required = list(required)
        self.actual = actual
        super().__init__(f"Permission denied. Required role: {self.required}, your role: {actual}")

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["required"] = self.required
        d["actual"] = self.actual
        return d


class ValidationError(ShopFloorError):
    kind = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class NotFound(ShopFloorError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class Conflict(ShopFloorError):
    kind = "conflict"
    status_code = 409
    default_message = "Already exists"


class StorageError(ShopFloorError):
    kind = "storage_error"
    status_code = 500
    default_message = "Storage failure"
