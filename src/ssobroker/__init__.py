"""Multi-tenant single-sign-on broker."""

from ssobroker.version import __version__

__all__ = ["__version__"]
