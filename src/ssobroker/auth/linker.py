"""Federated identity linking.

Reconciles a provider identity with the user store without creating
duplicate or orphaned accounts:

1. Look up by email first, then by ``(provider_user_id, auth_provider)``.
2. Nothing found: create a user linked to the provider.
3. Found, but created with a different provider (or as a password account,
   unless linking those is enabled): reject with ``ProviderMismatchError``.
4. Found and compatible: the first client to touch the record claims
   ``client_id`` if it has none, provider linkage is filled in if absent, and
   the profile picture is refreshed from the provider on every login
   (provider-hosted picture URLs expire).
5. All changes are persisted with a single ``save``.

Two first-time logins for the same email can race to step 2. The repository's
unique-email constraint makes the loser raise ``DuplicateUserError``, which
is turned into a fresh lookup and the step 3/4 update path.
"""

from loguru import logger

from ssobroker.auth.errors import DuplicateUserError, ProviderMismatchError
from ssobroker.schemas.identity import NormalizedIdentity
from ssobroker.schemas.user import AuthProvider, User
from ssobroker.store.base import UserRepository


class IdentityLinker:
    """Find-or-create users from normalized provider identities."""

    def __init__(self, users: UserRepository, link_password_accounts: bool = False):
        """Initialize identity linker.

        Args:
            users: User repository
            link_password_accounts: Let a federated login attach to an
                existing password account with the same email
        """
        self.users = users
        self.link_password_accounts = link_password_accounts

    async def find_existing(
        self, identity: NormalizedIdentity, provider: AuthProvider
    ) -> User | None:
        """Email takes precedence; provider id is the fallback."""
        if identity.email:
            user = await self.users.find_by_email(identity.email)
            if user:
                return user
        return await self.users.find_by_provider(identity.external_id, provider)

    async def link_or_create(
        self,
        identity: NormalizedIdentity,
        provider: AuthProvider,
        client_id: str,
    ) -> User:
        """Resolve the user for a federated login.

        Args:
            identity: Identity fetched from the provider
            provider: Provider the identity came from
            client_id: Client the login happens under

        Returns:
            The created or updated user

        Raises:
            ProviderMismatchError: Email belongs to an account created with
                another method
        """
        user = await self.find_existing(identity, provider)
        if user is None:
            try:
                return await self._create(identity, provider, client_id)
            except DuplicateUserError:
                logger.info(
                    f"Concurrent first login for {provider.value} user "
                    f"{identity.external_id}; updating the winning record"
                )
                user = await self.find_existing(identity, provider)
                if user is None:
                    raise

        return await self._update(user, identity, provider, client_id)

    async def _create(
        self,
        identity: NormalizedIdentity,
        provider: AuthProvider,
        client_id: str,
    ) -> User:
        user = User(
            name=identity.name,
            email=identity.email,
            profile_image_url=identity.picture_url,
            auth_provider=provider,
            provider_user_id=identity.external_id,
            client_id=client_id,
        )
        user = await self.users.create(user)
        logger.info(f"Created {provider.value} user {user.id} under client {client_id}")
        return user

    async def _update(
        self,
        user: User,
        identity: NormalizedIdentity,
        provider: AuthProvider,
        client_id: str,
    ) -> User:
        self._check_compatible(user, provider)

        if not user.client_id:
            user.client_id = client_id

        if not user.auth_provider:
            user.auth_provider = provider
            user.provider_user_id = identity.external_id
            logger.info(f"Linked user {user.id} to {provider.value}")

        # keep the old picture only when the provider returned none at all
        user.profile_image_url = identity.picture_url or user.profile_image_url

        return await self.users.save(user)

    def _check_compatible(self, user: User, provider: AuthProvider) -> None:
        if user.auth_provider and user.auth_provider != provider:
            logger.warning(
                f"User {user.id} was created with {user.auth_provider.value}, "
                f"refusing {provider.value} login"
            )
            raise ProviderMismatchError(user.auth_provider.value)

        if not user.auth_provider and user.has_password and not self.link_password_accounts:
            logger.warning(
                f"User {user.id} is a password account, refusing {provider.value} login"
            )
            raise ProviderMismatchError("email and password")
