"""Factory for repository backends.

Creates the ClientRepository / UserRepository pair based on configuration.
"""

from loguru import logger

from ssobroker.settings import StoreSettings, settings
from ssobroker.store.base import ClientRepository, UserRepository
from ssobroker.store.filesystem import FileSystemClientRepository, FileSystemUserRepository
from ssobroker.store.memory import InMemoryClientRepository, InMemoryUserRepository


# Singleton instances
_client_repository: ClientRepository | None = None
_user_repository: UserRepository | None = None


def create_repositories(
    config: StoreSettings | None = None,
) -> tuple[ClientRepository, UserRepository]:
    """Build a fresh repository pair.

    Args:
        config: Store settings (defaults to application settings)

    Returns:
        (ClientRepository, UserRepository)

    Raises:
        ValueError: If the backend name is invalid
    """
    config = config or settings.store
    backend = config.backend.lower()

    if backend == "memory":
        logger.info("Initializing in-memory repositories")
        return InMemoryClientRepository(), InMemoryUserRepository()

    if backend == "filesystem":
        logger.info(f"Initializing filesystem repositories at {config.path}")
        return (
            FileSystemClientRepository(base_path=config.path),
            FileSystemUserRepository(base_path=config.path),
        )

    raise ValueError(
        f"Invalid store backend: {backend}. "
        f"Valid options: memory, filesystem"
    )


def get_repositories() -> tuple[ClientRepository, UserRepository]:
    """Get repository instances (singleton)."""
    global _client_repository, _user_repository

    if _client_repository is None or _user_repository is None:
        _client_repository, _user_repository = create_repositories()

    return _client_repository, _user_repository

