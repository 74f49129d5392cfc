"""
REST client for the management server API with retry logic.
"""

import time
from typing import Any, Optional
import httpx
import structlog

from config import settings

logger = structlog.get_logger()


def rest_base(fqdn: str) -> str:
    """Base URL of the v2 REST API on a server."""
    return f"https://{fqdn}/api/v2"


class RestClient:
    """
    Thin wrapper over httpx.Client.

    - Passes the server session token in the "session" header
    - Decodes JSON responses
    - Retries timeouts, connection errors and 5xx responses
    """

    RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        allow_self_signed_certs: Optional[bool] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize REST client.

        Args:
            allow_self_signed_certs: Skip TLS verification. Uses config default if not provided.
            timeout: Request timeout in seconds. Uses config default if not provided.
            max_retries: Retries for transient failures. Uses config default if not provided.
            transport: Custom httpx transport (used by tests)
        """
        if allow_self_signed_certs is None:
            allow_self_signed_certs = settings.ALLOW_SELF_SIGNED_CERTS

        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.max_retries = settings.HTTP_MAX_RETRIES if max_retries is None else max_retries
        self._client = httpx.Client(
            verify=not allow_self_signed_certs,
            timeout=self.timeout,
            transport=transport
        )

        logger.debug(
            "RestClient initialized",
            verify_tls=not allow_self_signed_certs,
            timeout=self.timeout,
            max_retries=self.max_retries
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    @staticmethod
    def _headers(session: Optional[str], headers: Optional[dict]) -> dict:
        merged = dict(headers or {})
        if session:
            merged["session"] = session
        return merged

    def request(
        self,
        method: str,
        url: str,
        session: Optional[str] = None,
        headers: Optional[dict] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        Raises:
            httpx.HTTPStatusError: Non-2xx response (4xx immediately, 5xx after retries)
            httpx.RequestError: Connection failure or timeout after retries
        """
        headers = self._headers(session, headers)
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = self._client.request(method, url, headers=headers, **kwargs)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                last_error = e
                # Don't retry on client errors (4xx)
                if 400 <= e.response.status_code < 500:
                    logger.error(
                        "Client error, not retrying",
                        method=method,
                        url=url,
                        status=e.response.status_code,
                        body=e.response.text[:500]
                    )
                    raise
                logger.warning(
                    "HTTP error",
                    method=method,
                    url=url,
                    status=e.response.status_code,
                    attempt=attempt + 1
                )

            except httpx.RequestError as e:
                last_error = e
                logger.warning(
                    "Request error",
                    method=method,
                    url=url,
                    error=str(e),
                    attempt=attempt + 1
                )

            if attempt < self.max_retries:
                delay = self.RETRY_DELAY * (attempt + 1)
                logger.info("Retrying request", method=method, url=url, delay=delay)
                time.sleep(delay)

        logger.error("Request failed after all retries", method=method, url=url, error=str(last_error))
        raise last_error

    def get(self, url: str, session: Optional[str] = None, **kwargs) -> Any:
        return self.request("GET", url, session=session, **kwargs).json()

    def post(self, url: str, json: Any = None, session: Optional[str] = None, **kwargs) -> Any:
        return self.request("POST", url, session=session, json=json, **kwargs).json()

    def post_text(
        self,
        url: str,
        text: str,
        session: Optional[str] = None,
        headers: Optional[dict] = None
    ) -> Any:
        """POST a text/plain body (signed content) and decode the JSON reply."""
        headers = dict(headers or {})
        headers["Content-Type"] = "text/plain"
        return self.request("POST", url, session=session, headers=headers, content=text.encode("utf-8")).json()
