"""Domain exceptions shared by services, dependencies, and HTTP handlers.

Services raise these; app.main maps each family to one HTTP status.
"""


class AppError(Exception):
    """Base exception for application errors."""

    pass


# =============================================================================
# Authentication (always surfaced as a generic 401)
# =============================================================================


class AuthenticationError(AppError):
    """Caller could not be authenticated. The reason is logged, never returned."""

    reason = "authentication_failed"


class NoCredentialError(AuthenticationError):
    reason = "no_credential"


class InvalidCredentialError(AuthenticationError):
    reason = "invalid_credential"


class CredentialExpiredError(InvalidCredentialError):
    reason = "credential_expired"


class CredentialRevokedError(AuthenticationError):
    reason = "credential_revoked"


class UserNotFoundError(AuthenticationError):
    """Valid upstream identity with no local user row."""

    reason = "user_not_found"


class UserInactiveError(AuthenticationError):
    reason = "user_inactive"


# =============================================================================
# Authorization
# =============================================================================


class ForbiddenError(AppError):
    """Coarse denial: role lacks the operation."""

    pass


class NoShopAssignmentError(ForbiddenError):
    """Non-superadmin caller has no shop to scope data to."""

    def __init__(self, message: str = "no shop assigned to this user"):
        super().__init__(message)


class FieldError(AppError):
    """Error tied to a specific input field."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class PermissionDeniedError(FieldError):
    """Caller may not perform this change on this target."""

    pass


# =============================================================================
# Input / state
# =============================================================================


class ValidationError(FieldError):
    """Input failed validation."""

    pass


class NotFoundError(AppError):
    """Resource does not exist or is not visible to the caller."""

    pass


class ConflictError(AppError):
    """Uniqueness violation (duplicate email, shop code, external account)."""

    pass


class ExternalServiceError(AppError):
    """Identity platform or email provider call failed."""

    pass


class ExternalAccountExistsError(ExternalServiceError):
    """Identity platform already has an account for this email."""

    pass
