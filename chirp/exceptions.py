"""
Error taxonomy for the Chirp API.

Services raise these; chirp.middleware.ApiErrorMiddleware turns them into the
``{"success": false, "error": ...}`` envelope with ``status_code``.
"""


class ChirpError(Exception):
    status_code = 500
    default_message = "Server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ChirpError):
    status_code = 400
    default_message = "Bad request"


class Unauthenticated(ChirpError):
    status_code = 401
    default_message = "Not authorized to access this route"


class Forbidden(ChirpError):
    status_code = 403
    default_message = "Not allowed"


class NotFound(ChirpError):
    status_code = 404
    default_message = "Resource not found"


class Gone(ChirpError):
    status_code = 410
    default_message = "Resource has been deleted"


class Conflict(ChirpError):
    status_code = 409
    default_message = "Conflict"


class MethodNotAllowed(ChirpError):
    status_code = 405
    default_message = "Method not allowed"
