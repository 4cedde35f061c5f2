"""Abstract repository interfaces for clients and users.

Defines the persistence contract with multiple backend implementations:
- InMemory*Repository: process-local dicts (tests, single-process dev)
- FileSystem*Repository: JSON documents on disk (dev, small deployments)

The auth core only ever reaches storage through these finders.
"""

from abc import ABC, abstractmethod

from ssobroker.schemas.client import Client, ClientUpdate
from ssobroker.schemas.user import AuthProvider, User


class ClientRepository(ABC):
    """Keyed-record storage for registered clients.

    Read-mostly for the auth flows; written only by administrative
    operations.
    """

    @abstractmethod
    async def find_by_token(self, token: str) -> Client | None:
        """Get client by its opaque token.

        Args:
            token: Client token presented by the caller

        Returns:
            Client if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_id(self, client_id: str) -> Client | None:
        """Get client by id.

        Args:
            client_id: Client identifier

        Returns:
            Client if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, client: Client) -> Client:
        """Store a new client.

        Args:
            client: Client to store

        Returns:
            Stored client

        Raises:
            ValueError: A client with the same id or token already exists
        """
        pass

    @abstractmethod
    async def update(self, client_id: str, changes: ClientUpdate) -> Client | None:
        """Apply a partial update.

        Args:
            client_id: Client identifier
            changes: Fields to change (unset fields are kept)

        Returns:
            Updated client, or None if not found
        """
        pass

    @abstractmethod
    async def delete(self, client_id: str) -> bool:
        """Delete a client.

        Users already affiliated with the client keep their ``client_id``
        (soft orphan); deletion never cascades.

        Args:
            client_id: Client identifier

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[Client]:
        """List all clients, oldest first."""
        pass


class UserRepository(ABC):
    """Storage for end users.

    Implementations must enforce unique email: ``create`` and ``save`` raise
    ``DuplicateUserError`` when another user already holds the email.
    """

    @abstractmethod
    async def find_by_email(self, email: str) -> User | None:
        """Get user by (case-insensitive) email."""
        pass

    @abstractmethod
    async def find_by_provider(
        self, provider_user_id: str, auth_provider: AuthProvider
    ) -> User | None:
        """Get user by provider-scoped external id."""
        pass

    @abstractmethod
    async def find_by_id(self, user_id: str) -> User | None:
        """Get user by id."""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        """Store a new user.

        Raises:
            DuplicateUserError: Email already taken
        """
        pass

    @abstractmethod
    async def save(self, user: User) -> User:
        """Persist all mutations of an existing user in a single write.

        Raises:
            DuplicateUserError: Email already taken by another user
            UserNotFoundError: User does not exist
        """
        pass
