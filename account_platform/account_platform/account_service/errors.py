"""
Error taxonomy for the account service.

Each error carries the HTTP status and short code the API layer renders
as ``{"error": code, "message": message}``. ``InvalidCredentials`` and
``InvalidToken`` deliberately merge several internal causes into one
externally visible error.
"""


class AccountServiceError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AccountServiceError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class EmailExists(AccountServiceError):
    status_code = 409
    code = "email_exists"
    default_message = "Email already exists"


class DuplicateEmail(EmailExists):
    """Raised by the store when the unique email constraint rejects an insert."""


class InvalidCredentials(AccountServiceError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class InvalidToken(AccountServiceError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or expired token"


class NotFound(AccountServiceError):
    status_code = 404
    code = "not_found"
    default_message = "Account not found"


class StoreError(AccountServiceError):
    code = "database_error"
    default_message = "Database operation failed"


class HashError(AccountServiceError):
    code = "hash_error"
    default_message = "Failed to hash password"


class VerifyError(AccountServiceError):
    code = "verification_error"
    default_message = "Failed to verify password"


class TokenIssueError(AccountServiceError):
    code = "token_error"
    default_message = "Failed to generate token"
