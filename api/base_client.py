from abc import ABC

import httpx

from models.errors import NormalizedError


class BaseStreamingClient(ABC):
    """
    Abstract base class for the HTTP clients behind the assistant.

    Owns one ``httpx.AsyncClient`` (connection pool) per instance and maps
    transport exceptions to NormalizedError.
    """

    provider: str = "unknown"

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        **kwargs,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the remote service
            timeout_s: Request timeout in seconds
            http_client: Optional pre-built AsyncClient (tests inject one backed
                by ``httpx.MockTransport``)
            **kwargs: Extra options passed to ``httpx.AsyncClient``
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout_s, **kwargs)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _normalize_error(self, exc: Exception, provider: str | None = None) -> NormalizedError:
        """
        Convert a transport exception into a NormalizedError.

        Args:
            exc: The exception raised by httpx (or a status check)
            provider: Override for the provider label

        Returns:
            NormalizedError with a stable code and retryable flag
        """
        provider = provider or self.provider
        details: dict = {"exception": exc.__class__.__name__}

        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            details["status_code"] = status
            return NormalizedError(
                code="http_status",
                message=f"{provider} returned HTTP {status}",
                provider=provider,
                retryable=status >= 500 or status == 429,
                details=details,
            )

        if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
            return NormalizedError(
                code="timeout",
                message=f"{provider} request timed out",
                provider=provider,
                retryable=True,
                details=details,
            )

        if isinstance(exc, (httpx.ConnectError, httpx.NetworkError)):
            return NormalizedError(
                code="connect",
                message=f"Could not reach {provider}: {exc}",
                provider=provider,
                retryable=True,
                details=details,
            )

        return NormalizedError(
            code="unknown",
            message=f"{provider} request failed: {exc}",
            provider=provider,
            retryable=False,
            details=details,
        )
