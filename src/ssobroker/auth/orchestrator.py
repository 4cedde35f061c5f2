"""Authentication flow orchestration.

Every entry point has the same shape:

    Validate client -> Authenticate -> Link user -> Issue token -> Respond

Each call is a single transition from an untrusted request to either an
``AuthResult`` or a raised ``BrokerError``; nothing is kept between requests.
The only multi-step protocol is the OAuth redirect round-trip:

    begin_oauth (encode state, send browser to provider)
      -> provider consent (external)
      -> complete_oauth (decode state, re-validate, exchange code, link, issue)

``complete_oauth`` never raises: the browser is always sent back to the login
surface, with a non-committal message on failure.
"""

import re
from urllib.parse import urlencode, urlsplit, urlunsplit

from loguru import logger

from ssobroker.auth.errors import (
    BrokerError,
    ClientNotFoundError,
    DuplicateEmailError,
    DuplicateUserError,
    InvalidCredentialsError,
    InvalidEmailFormatError,
    InvalidRedirectUrlError,
    InvalidRequestError,
    MissingFieldError,
    MissingProviderCredentialError,
    PasswordTooShortError,
    SocialAuthAccountError,
    UnknownClientError,
    UserNotFoundError,
)
from ssobroker.auth.linker import IdentityLinker
from ssobroker.auth.passwords import PasswordHasher
from ssobroker.auth.providers import IdentityProvider
from ssobroker.auth.provider_factory import get_identity_providers, parse_provider
from ssobroker.auth.state import decode_state, encode_state
from ssobroker.auth.tokens import TokenIssuer
from ssobroker.auth.trust import TrustValidator
from ssobroker.schemas.client import Client, ClientInfo, ClientSummary
from ssobroker.schemas.identity import ProviderCredential
from ssobroker.schemas.responses import AuthResult, CallbackOutcome
from ssobroker.schemas.user import AuthProvider, User
from ssobroker.settings import AuthSettings, ProviderSettings, settings
from ssobroker.store.base import ClientRepository, UserRepository

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

# Messages shown on the login page after a failed OAuth callback
GENERIC_CALLBACK_ERROR = "Authentication failed"
INVALID_CLIENT_CALLBACK_ERROR = "Invalid client or redirect URL"


def with_auth_token(redirect_url: str, token: str) -> str:
    """Append ``auth_token=<token>`` to a tenant redirect URL.

    The tenant's own query string is kept byte for byte. The query travels
    through the browser, so this is the lower-trust delivery channel compared
    with a JSON response.
    """
    parts = urlsplit(redirect_url)
    param = urlencode({"auth_token": token})
    query = f"{parts.query}&{param}" if parts.query else param
    return urlunsplit(parts._replace(query=query))


def _require(**fields: tuple[str | None, str]) -> None:
    """Raise MissingFieldError for the first empty field.

    Each keyword maps a field name to ``(value, label)``.
    """
    for field, (value, label) in fields.items():
        if not value:
            raise MissingFieldError(field, label)


class FlowOrchestrator:
    """Runs password, OAuth and token-bearer entry points."""

    def __init__(
        self,
        clients: ClientRepository,
        users: UserRepository,
        issuer: TokenIssuer,
        providers: dict[AuthProvider, IdentityProvider] | None = None,
        hasher: PasswordHasher | None = None,
        auth_config: AuthSettings | None = None,
        provider_config: ProviderSettings | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            clients: Client registry
            users: User repository
            issuer: Bearer token issuer
            providers: Identity providers by name (defaults to the global registry)
            hasher: Password hasher
            auth_config: Auth settings (defaults to application settings)
            provider_config: Provider settings (defaults to application settings)
        """
        self.auth_config = auth_config or settings.auth
        self.provider_config = provider_config or settings.providers

        self.clients = clients
        self.users = users
        self.issuer = issuer
        self.providers = providers if providers is not None else get_identity_providers()
        self.hasher = hasher or PasswordHasher()
        self.validator = TrustValidator(clients)
        self.linker = IdentityLinker(
            users, link_password_accounts=self.auth_config.link_password_accounts
        )

    # ------------------------------------------------------------------
    # Client checks
    # ------------------------------------------------------------------

    async def validate_client(
        self,
        token: str | None,
        redirect_url: str | None,
        client_origin: str | None = None,
    ) -> Client:
        """Validate a client token, redirect URL and (optional) origin."""
        _require(
            token=(token, "Client token"),
            redirect_url=(redirect_url, "Redirect URL"),
        )
        return await self.validator.validate(token, redirect_url, client_origin)

    async def client_info(self, token: str | None) -> ClientInfo:
        """Public client details for rendering the login surface."""
        _require(token=(token, "Client token"))
        client = await self.clients.find_by_token(token)
        if not client:
            raise ClientNotFoundError()
        return ClientInfo.from_client(client)

    # ------------------------------------------------------------------
    # Password flows
    # ------------------------------------------------------------------

    async def password_login(
        self,
        email: str | None,
        password: str | None,
        token: str | None,
        redirect_url: str | None,
        client_origin: str | None = None,
        browser: bool = False,
    ) -> AuthResult:
        """Log in with email and password.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            SocialAuthAccountError: Account has no password (federated only)
        """
        _require(
            email=(email, "Email"),
            password=(password, "Password"),
            token=(token, "Client token"),
            redirect_url=(redirect_url, "Redirect URL"),
        )
        client = await self.validator.validate(token, redirect_url, client_origin)

        user = await self.users.find_by_email(email)
        if not user:
            logger.info(f"Password login for unknown email under client {client.id}")
            raise InvalidCredentialsError()

        if not user.has_password:
            provider = user.auth_provider.value if user.auth_provider else "social"
            raise SocialAuthAccountError(provider)

        if not self.hasher.verify(password, user.password_hash):
            logger.info(f"Wrong password for user {user.id}")
            raise InvalidCredentialsError()

        logger.info(f"Password login for user {user.id} under client {client.id}")
        return self._result(user, client, redirect_url if browser else None)

    async def password_register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        token: str | None,
        redirect_url: str | None,
        client_origin: str | None = None,
        browser: bool = False,
    ) -> AuthResult:
        """Register a password account under a client.

        Raises:
            PasswordTooShortError: Password below the configured minimum
            InvalidEmailFormatError: Email is not shaped like an address
            DuplicateEmailError: Email already registered
        """
        _require(
            name=(name, "Name"),
            email=(email, "Email"),
            password=(password, "Password"),
        )
        min_length = self.auth_config.min_password_length
        if len(password) < min_length:
            raise PasswordTooShortError(min_length)
        _require(
            token=(token, "Client token"),
            redirect_url=(redirect_url, "Redirect URL"),
        )

        client = await self.validator.validate(token, redirect_url, client_origin)

        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise InvalidEmailFormatError()

        if await self.users.find_by_email(email):
            raise DuplicateEmailError()

        user = User(
            name=name.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
            client_id=client.id,
        )
        try:
            user = await self.users.create(user)
        except DuplicateUserError as e:
            raise DuplicateEmailError() from e

        logger.info(f"Registered password user {user.id} under client {client.id}")
        return self._result(user, client, redirect_url if browser else None)

    # ------------------------------------------------------------------
    # OAuth redirect round-trip
    # ------------------------------------------------------------------

    async def begin_oauth(
        self,
        provider: str | AuthProvider,
        token: str | None,
        redirect_url: str | None,
        client_origin: str | None = None,
    ) -> str:
        """Validate the client and build the provider authorization URL.

        Raises:
            MissingProviderCredentialError: Client has no OAuth app for provider
        """
        provider = parse_provider(provider)
        client = await self.validate_client(token, redirect_url, client_origin)
        credential = self._credential(client, provider)

        state = encode_state(token, redirect_url, self.auth_config.state_signing_secret)
        url = self._provider(provider).authorization_url(
            credential,
            state=state,
            redirect_uri=self.provider_config.callback_url(provider.value),
        )
        logger.info(f"Starting {provider.value} login for client {client.id}")
        return url

    async def complete_oauth(
        self,
        provider: str | AuthProvider,
        code: str | None,
        state: str | None,
        error: str | None = None,
    ) -> CallbackOutcome:
        """Finish an OAuth callback; always returns a redirect to the login surface."""
        login_url = self.provider_config.login_url()

        if error:
            logger.info(f"{provider} login cancelled or refused by provider: {error}")
            return CallbackOutcome(
                redirect_url=f"{login_url}?{urlencode({'cancelled': 'true'})}",
                success=False,
                reason="cancelled",
            )

        try:
            provider = parse_provider(provider)
            if not code or not state:
                raise InvalidRequestError("Invalid request")

            flow = decode_state(state, self.auth_config.state_signing_secret)
            # decoded state proves nothing; validate it like any other request
            client = await self.validator.validate(flow.client_token, flow.redirect_url)
            credential = self._credential(client, provider)

            identity = await self._provider(provider).exchange_and_fetch_identity(
                credential,
                code,
                redirect_uri=self.provider_config.callback_url(provider.value),
            )
            user = await self.linker.link_or_create(identity, provider, client.id)
            bearer = self.issuer.issue(user.id)
        except BrokerError as e:
            logger.warning(f"{provider} callback rejected: {e.code} ({e.message})")
            return CallbackOutcome(
                redirect_url=f"{login_url}?{urlencode({'error': _callback_message(e)})}",
                success=False,
                reason=e.code,
            )
        except Exception:
            logger.exception(f"{provider} callback failed unexpectedly")
            return CallbackOutcome(
                redirect_url=f"{login_url}?{urlencode({'error': GENERIC_CALLBACK_ERROR})}",
                success=False,
                reason="SERVER_ERROR",
            )

        logger.info(f"{provider.value} login for user {user.id} under client {client.id}")
        params = urlencode(
            {
                "token": flow.client_token,
                "redirect_url": flow.redirect_url,
                "social_token": bearer,
            }
        )
        return CallbackOutcome(redirect_url=f"{login_url}?{params}", success=True)

    # ------------------------------------------------------------------
    # Provider tokens from native apps
    # ------------------------------------------------------------------

    async def token_login(
        self,
        provider: str | AuthProvider,
        material: str | None,
        token: str | None,
        redirect_url: str | None,
        client_origin: str | None = None,
    ) -> AuthResult:
        """Log in with a provider-issued token (Google ID token, Facebook access token).

        Raises:
            MissingProviderCredentialError: Client has no OAuth app for provider
        """
        provider = parse_provider(provider)
        if provider == AuthProvider.GOOGLE:
            _require(id_token=(material, "ID token"))
        else:
            _require(access_token=(material, "Access token"))
        client = await self.validate_client(token, redirect_url, client_origin)
        credential = self._credential(client, provider)

        identity = await self._provider(provider).identity_from_token(credential, material)
        user = await self.linker.link_or_create(identity, provider, client.id)

        logger.info(f"{provider.value} token login for user {user.id} under client {client.id}")
        return self._result(user, client)

    # ------------------------------------------------------------------
    # Bearer token holders
    # ------------------------------------------------------------------

    async def current_user(self, bearer: str | None) -> User:
        """Resolve the user behind a broker bearer token.

        Raises:
            InvalidTokenError: Token tampered, expired or malformed
            UserNotFoundError: Token valid but user gone
        """
        user_id = self.issuer.verify(bearer or "")
        user = await self.users.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    # ------------------------------------------------------------------

    def _provider(self, provider: AuthProvider) -> IdentityProvider:
        try:
            return self.providers[provider]
        except KeyError as e:
            raise MissingProviderCredentialError(provider.value) from e

    @staticmethod
    def _credential(client: Client, provider: AuthProvider) -> ProviderCredential:
        credential = client.credentials_for(provider)
        if credential is None:
            logger.info(f"{provider.value} is not configured for client {client.id}")
            raise MissingProviderCredentialError(provider.value)
        return credential

    def _result(self, user: User, client: Client, redirect_url: str | None = None) -> AuthResult:
        bearer = self.issuer.issue(user.id)
        return AuthResult(
            token=bearer,
            user=user.to_profile(),
            client=ClientSummary.from_client(client),
            redirect_url=with_auth_token(redirect_url, bearer) if redirect_url else None,
        )


def _callback_message(error: BrokerError) -> str:
    """Login-page message for a failed callback; provider detail never leaks."""
    if isinstance(error, (UnknownClientError, InvalidRedirectUrlError)):
        return INVALID_CLIENT_CALLBACK_ERROR
    if isinstance(
        error,
        (MissingProviderCredentialError, SocialAuthAccountError, DuplicateEmailError),
    ):
        return error.message
    if error.code in ("DIFFERENT_AUTH_PROVIDER", "MISSING_EMAIL"):
        return error.message
    return GENERIC_CALLBACK_ERROR
