"""Filesystem-based repositories.

Stores clients and users as JSON documents on disk.
Suitable for development, testing, and small deployments.

Storage layout:
    {base_path}/clients/{client_id}.json
    {base_path}/users/{user_id}.json

Finders scan the collection directory, so lookups are O(n) in the number of
records. Unique email is enforced per process with an asyncio lock; run a
single broker process against one directory.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Any, Iterator

from loguru import logger
from pydantic import ValidationError

from ssobroker.auth.errors import DuplicateUserError, UserNotFoundError
from ssobroker.schemas.client import Client, ClientUpdate
from ssobroker.schemas.user import AuthProvider, User
from ssobroker.store.base import ClientRepository, UserRepository


class _JsonCollection:
    """One directory of JSON documents keyed by id."""

    def __init__(self, base_path: Path, name: str):
        self.path = base_path / name

    def read(self, key: str) -> dict[str, Any] | None:
        path = self._key_path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    def write(self, key: str, value: dict[str, Any]) -> None:
        path = self._key_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(value, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise

    def remove(self, key: str) -> bool:
        path = self._key_path(key)
        if not path.exists():
            return False
        path.unlink()
        return True

    def exists(self, key: str) -> bool:
        return self._key_path(key).exists()

    def scan(self) -> Iterator[dict[str, Any]]:
        if not self.path.exists():
            return
        for path in sorted(self.path.glob("*.json")):
            document = self.read(path.stem)
            if document is not None:
                yield document

    def _key_path(self, key: str) -> Path:
        # ids are generated hex strings; refuse anything that could escape the directory
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid document key: {key!r}")
        return self.path / f"{key}.json"


def _load(model: type[Client] | type[User], document: dict[str, Any]):
    try:
        return model.model_validate(document)
    except ValidationError as e:
        logger.error(f"Skipping malformed {model.__name__} document: {e}")
        return None


class FileSystemClientRepository(ClientRepository):
    """Clients as JSON files under ``{base_path}/clients``."""

    def __init__(self, base_path: str = "~/.ssobroker/data"):
        self.base_path = Path(os.path.expanduser(base_path))
        self._docs = _JsonCollection(self.base_path, "clients")
        self._lock = asyncio.Lock()
        logger.info(f"FileSystemClientRepository initialized: {self._docs.path}")

    async def find_by_token(self, token: str) -> Client | None:
        if not token:
            return None
        for document in self._docs.scan():
            if document.get("token") == token:
                return _load(Client, document)
        return None

    async def find_by_id(self, client_id: str) -> Client | None:
        try:
            document = self._docs.read(client_id)
        except ValueError:
            return None
        return _load(Client, document) if document else None

    async def create(self, client: Client) -> Client:
        async with self._lock:
            if self._docs.exists(client.id):
                raise ValueError(f"Client {client.id} already exists")
            if any(d.get("token") == client.token for d in self._docs.scan()):
                raise ValueError("Client token already in use")
            self._docs.write(client.id, client.model_dump(mode="json", by_alias=True))
        logger.info(f"Registered client {client.id} ({client.name})")
        return client

    async def update(self, client_id: str, changes: ClientUpdate) -> Client | None:
        async with self._lock:
            client = await self.find_by_id(client_id)
            if not client:
                return None
            updated = client.model_copy(update=changes.model_dump(exclude_unset=True))
            self._docs.write(client_id, updated.model_dump(mode="json", by_alias=True))
        return updated

    async def delete(self, client_id: str) -> bool:
        async with self._lock:
            try:
                return self._docs.remove(client_id)
            except ValueError:
                return False

    async def list_all(self) -> list[Client]:
        clients = [c for c in (_load(Client, d) for d in self._docs.scan()) if c]
        return sorted(clients, key=lambda c: c.created_at)


class FileSystemUserRepository(UserRepository):
    """Users as JSON files under ``{base_path}/users``."""

    def __init__(self, base_path: str = "~/.ssobroker/data"):
        self.base_path = Path(os.path.expanduser(base_path))
        self._docs = _JsonCollection(self.base_path, "users")
        self._lock = asyncio.Lock()
        logger.info(f"FileSystemUserRepository initialized: {self._docs.path}")

    async def find_by_email(self, email: str) -> User | None:
        if not email:
            return None
        email = email.strip().lower()
        for document in self._docs.scan():
            if document.get("email") == email:
                return _load(User, document)
        return None

    async def find_by_provider(
        self, provider_user_id: str, auth_provider: AuthProvider
    ) -> User | None:
        for document in self._docs.scan():
            if (
                document.get("providerUserId") == provider_user_id
                and document.get("authProvider") == auth_provider.value
            ):
                return _load(User, document)
        return None

    async def find_by_id(self, user_id: str) -> User | None:
        try:
            document = self._docs.read(user_id)
        except ValueError:
            return None
        return _load(User, document) if document else None

    async def create(self, user: User) -> User:
        async with self._lock:
            if self._docs.exists(user.id):
                raise DuplicateUserError(f"User {user.id} already exists")
            self._check_unique_email(user)
            self._docs.write(user.id, user.model_dump(mode="json", by_alias=True))
        return user

    async def save(self, user: User) -> User:
        async with self._lock:
            if not self._docs.exists(user.id):
                raise UserNotFoundError()
            self._check_unique_email(user)
            self._docs.write(user.id, user.model_dump(mode="json", by_alias=True))
        return user

    def _check_unique_email(self, user: User) -> None:
        if not user.email:
            return
        for document in self._docs.scan():
            if document.get("id") != user.id and document.get("email") == user.email:
                raise DuplicateUserError()
