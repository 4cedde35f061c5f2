"""Persistence for clients and users behind repository-style finders."""

from ssobroker.store.base import ClientRepository, UserRepository

__all__ = ["ClientRepository", "UserRepository"]
