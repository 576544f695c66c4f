# ------------------------------------------------------------
# Error types
#
# Every failure the API reports is one of these. The handlers in app.py
# turn them into {"error": <message>} bodies with the matching status code.
# ------------------------------------------------------------


class SweetShopError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class Unauthorized(SweetShopError):
    status_code = 401
    default_message = "Access denied. No token provided."


class InvalidToken(Unauthorized):
    default_message = "Invalid token."


class Forbidden(SweetShopError):
    status_code = 403
    default_message = "Access denied. Admins only."


class NotFound(SweetShopError):
    status_code = 404
    default_message = "Sweet not found"


class ValidationError(SweetShopError):
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, fields: dict[str, str], message: str | None = None):
        self.fields = fields
        if message is None:
            message = "Validation failed: " + ", ".join(
                f"{name}: {reason}" for name, reason in fields.items()
            )
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "fields": self.fields}


class InvalidAmount(SweetShopError):
    status_code = 400
    default_message = "Invalid restock amount"


class OutOfStock(SweetShopError):
    status_code = 400
    default_message = "Out of stock"


class Conflict(SweetShopError):
    status_code = 400
    default_message = "Email already exists"


class InternalError(SweetShopError):
    pass
