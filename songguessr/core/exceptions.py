# ============================================================================
# FILE: songguessr/core/exceptions.py
# ============================================================================
"""
Error taxonomy shared by services and endpoints.

Services raise these; main.py renders them as {"detail": message} with the
matching status code. The message is always safe to show to a client.
"""


class SongGuessrError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SongGuessrError):
    status_code = 400
    default_message = "Invalid request"


class AuthError(SongGuessrError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(SongGuessrError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(SongGuessrError):
    status_code = 404
    default_message = "Not found"


class ConflictError(SongGuessrError):
    status_code = 409
    default_message = "Already exists"


class StateError(SongGuessrError):
    status_code = 400
    default_message = "Illegal state transition"


class SessionExpiredError(StateError):
    status_code = 408
    default_message = "Session expired"


class InternalError(SongGuessrError):
    status_code = 500
