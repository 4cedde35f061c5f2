"""Shared HTTP exchange for upstream OAuth providers.

Providers are untrusted third parties: every call has a bounded timeout, is
retried once only on a transient transport failure (connect error, timeout),
never on an HTTP error response, and anything other than a 2xx JSON object
becomes a ``ProviderError``.

Secrets and tokens travel in ``params``/``data``/``headers``, never in the
``url`` argument, so the URL can be logged as-is.
"""

from typing import Any

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ssobroker.auth.errors import ProviderError
from ssobroker.settings import ProviderSettings


class ProviderHTTP:
    """JSON-over-HTTP client for one provider."""

    def __init__(
        self,
        provider: str,
        timeout: float = 5.0,
        retries: int = 1,
        retry_wait: float = 0.25,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize provider HTTP client.

        Args:
            provider: Provider name (for logs)
            timeout: Per-call timeout in seconds
            retries: Retries on transient transport errors
            retry_wait: Seconds to wait before a retry
            transport: Custom httpx transport (tests inject httpx.MockTransport)
        """
        self.provider = provider
        self.timeout = timeout
        self.retries = max(retries, 0)
        self.retry_wait = retry_wait
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        provider: str,
        config: ProviderSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ProviderHTTP":
        return cls(
            provider,
            timeout=config.http_timeout,
            retries=config.http_retries,
            retry_wait=config.retry_wait_seconds,
            transport=transport,
        )

    async def get_json(self, url: str, *, action: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request_json("GET", url, action=action, **kwargs)

    async def post_json(self, url: str, *, action: str, **kwargs: Any) -> dict[str, Any]:
        return await self.request_json("POST", url, action=action, **kwargs)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        action: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Call a provider endpoint and return its JSON object body.

        Args:
            method: HTTP method
            url: Endpoint URL without secrets
            action: What the call is for (for logs)
            params: Query parameters
            data: Form body
            headers: Request headers

        Returns:
            Decoded JSON object

        Raises:
            ProviderError: Network failure after retry, non-2xx, or non-JSON body
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.retries + 1),
                wait=wait_fixed(self.retry_wait),
                retry=retry_if_exception_type(httpx.TransportError),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.info(f"Retrying {self.provider} {action} after transport error")
                    response = await self._send(method, url, params, data, headers)
        except httpx.TransportError as e:
            logger.error(f"{self.provider} {action} failed: {type(e).__name__}: {e}")
            raise ProviderError() from e

        if not response.is_success:
            logger.warning(
                f"{self.provider} {action} returned HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )
            raise ProviderError()

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning(f"{self.provider} {action} returned a non-JSON body")
            raise ProviderError() from e

        if not isinstance(payload, dict):
            logger.warning(f"{self.provider} {action} returned unexpected JSON: {type(payload).__name__}")
            raise ProviderError()

        return payload

    async def _send(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None,
        data: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            return await client.request(method, url, params=params, data=data, headers=headers)
