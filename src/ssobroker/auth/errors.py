"""Error taxonomy for authentication flows.

Every rejection is a ``BrokerError`` carrying a user-facing message, a stable
machine-readable code and the HTTP status the API layer reports. Errors are
raised by the core and translated once at the edge (JSON body or login-page
redirect); none of them is fatal to the process.
"""

from typing import Any


class BrokerError(Exception):
    """Base class for rejected authentication flows."""

    status_code: int = 400
    code: str = "BROKER_ERROR"
    message: str = "Authentication failed"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
    ):
        self.message = message or self.message
        self.code = code or self.code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "error": self.message, "code": self.code}


# Trust failures: terminal, never retried


class UnknownClientError(BrokerError):
    status_code = 401
    code = "INVALID_CLIENT"
    message = "Invalid client token"


class InvalidRedirectUrlError(BrokerError):
    status_code = 400
    code = "INVALID_REDIRECT_URL"
    message = "Invalid redirect URL"


class InvalidOriginError(BrokerError):
    status_code = 403
    code = "INVALID_ORIGIN"
    message = "Invalid request origin"


class StateDecodeError(InvalidRedirectUrlError):
    """Malformed or tampered OAuth flow state; handled like a bad redirect URL."""

    code = "INVALID_STATE"
    message = "Invalid client or redirect URL"


# Provider failures


class ProviderError(BrokerError):
    status_code = 401
    code = "PROVIDER_ERROR"
    message = "Failed to authenticate with the identity provider"


class MissingEmailError(ProviderError):
    status_code = 400
    code = "MISSING_EMAIL"
    message = "Email is required from the identity provider account"


class MissingProviderCredentialError(BrokerError):
    status_code = 400
    code = "PROVIDER_NOT_CONFIGURED"

    def __init__(self, provider: str):
        super().__init__(f"{provider.capitalize()} OAuth is not configured for this client")


class UnsupportedProviderError(BrokerError):
    status_code = 404
    code = "UNSUPPORTED_PROVIDER"
    message = "Unsupported identity provider"


# Identity linking and credentials


class InvalidCredentialsError(BrokerError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class DuplicateEmailError(BrokerError):
    status_code = 400
    code = "EMAIL_ALREADY_EXISTS"
    message = "Email already registered"


class ProviderMismatchError(BrokerError):
    status_code = 400
    code = "DIFFERENT_AUTH_PROVIDER"

    def __init__(self, existing_provider: str):
        super().__init__(f"This account was created using {existing_provider} authentication")


class SocialAuthAccountError(BrokerError):
    status_code = 400
    code = "SOCIAL_AUTH_ACCOUNT"

    def __init__(self, provider: str):
        super().__init__(f"This account was created using {provider} authentication")


# Request input


class MissingFieldError(BrokerError):
    status_code = 400

    def __init__(self, field: str, label: str | None = None):
        label = label or field.replace("_", " ").capitalize()
        super().__init__(f"{label} is required", code=f"MISSING_{field.upper()}")


class InvalidEmailFormatError(BrokerError):
    status_code = 400
    code = "INVALID_EMAIL_FORMAT"
    message = "Invalid email format"


class PasswordTooShortError(BrokerError):
    status_code = 400
    code = "PASSWORD_TOO_SHORT"

    def __init__(self, min_length: int):
        super().__init__(f"Password must be at least {min_length} characters long")


class InvalidRequestError(BrokerError):
    status_code = 400
    code = "INVALID_REQUEST"
    message = "Invalid authentication request"


# Bearer tokens and lookups


class InvalidTokenError(BrokerError):
    status_code = 401
    code = "INVALID_TOKEN"
    message = "Invalid or expired token"


class UserNotFoundError(BrokerError):
    status_code = 404
    code = "USER_NOT_FOUND"
    message = "User not found"


class ClientNotFoundError(BrokerError):
    status_code = 404
    code = "CLIENT_NOT_FOUND"
    message = "Client not found"


# Storage and configuration


class DuplicateUserError(BrokerError):
    """Unique email constraint violated at the repository layer."""

    status_code = 409
    code = "DUPLICATE_USER"
    message = "A user with this email already exists"


class ConfigurationError(BrokerError):
    status_code = 500
    code = "CONFIGURATION_ERROR"
    message = "Service is not configured"
