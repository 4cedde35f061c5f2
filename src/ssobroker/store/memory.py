"""In-memory repositories.

Process-local storage used by tests and single-process development. Writes
are serialised with an asyncio lock so the unique-email constraint holds
across concurrent requests in the same event loop.
"""

import asyncio

from loguru import logger

from ssobroker.auth.errors import DuplicateUserError, UserNotFoundError
from ssobroker.schemas.client import Client, ClientUpdate
from ssobroker.schemas.user import AuthProvider, User
from ssobroker.store.base import ClientRepository, UserRepository


class InMemoryClientRepository(ClientRepository):
    def __init__(self, clients: list[Client] | None = None):
        self._clients: dict[str, Client] = {}
        for client in clients or []:
            self._clients[client.id] = client.model_copy(deep=True)

    async def find_by_token(self, token: str) -> Client | None:
        if not token:
            return None
        for client in self._clients.values():
            if client.token == token:
                return client.model_copy(deep=True)
        return None

    async def find_by_id(self, client_id: str) -> Client | None:
        client = self._clients.get(client_id)
        return client.model_copy(deep=True) if client else None

    async def create(self, client: Client) -> Client:
        if client.id in self._clients:
            raise ValueError(f"Client {client.id} already exists")
        if any(c.token == client.token for c in self._clients.values()):
            raise ValueError("Client token already in use")
        self._clients[client.id] = client.model_copy(deep=True)
        logger.info(f"Registered client {client.id} ({client.name})")
        return client

    async def update(self, client_id: str, changes: ClientUpdate) -> Client | None:
        client = self._clients.get(client_id)
        if not client:
            return None
        updated = client.model_copy(update=changes.model_dump(exclude_unset=True))
        self._clients[client_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, client_id: str) -> bool:
        return self._clients.pop(client_id, None) is not None

    async def list_all(self) -> list[Client]:
        clients = sorted(self._clients.values(), key=lambda c: c.created_at)
        return [c.model_copy(deep=True) for c in clients]


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._users: dict[str, User] = {}
        self._lock = asyncio.Lock()

    async def find_by_email(self, email: str) -> User | None:
        if not email:
            return None
        email = email.strip().lower()
        for user in self._users.values():
            if user.email == email:
                return user.model_copy(deep=True)
        return None

    async def find_by_provider(
        self, provider_user_id: str, auth_provider: AuthProvider
    ) -> User | None:
        for user in self._users.values():
            if (
                user.provider_user_id == provider_user_id
                and user.auth_provider == auth_provider
            ):
                return user.model_copy(deep=True)
        return None

    async def find_by_id(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    async def create(self, user: User) -> User:
        async with self._lock:
            self._check_unique_email(user)
            if user.id in self._users:
                raise DuplicateUserError(f"User {user.id} already exists")
            self._users[user.id] = user.model_copy(deep=True)
        return user

    async def save(self, user: User) -> User:
        async with self._lock:
            if user.id not in self._users:
                raise UserNotFoundError()
            self._check_unique_email(user)
            self._users[user.id] = user.model_copy(deep=True)
        return user

    def _check_unique_email(self, user: User) -> None:
        if not user.email:
            return
        for other in self._users.values():
            if other.id != user.id and other.email == user.email:
                raise DuplicateUserError()
