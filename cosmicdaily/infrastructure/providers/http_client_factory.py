"""
HTTP client factory for the APOD and translation clients.
Handles configuration and initialization of the shared httpx client.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from ...config import Settings
from ...logging import info, warning, LogRecord, LogEvent


@dataclass
class ConnectionLimits:
    """Connection pool configuration."""

    max_keepalive: int
    max_connections: int
    keepalive_expiry: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConnectionLimits":
        return cls(
            max_keepalive=settings.pool_max_keepalive_connections,
            max_connections=settings.pool_max_connections,
            keepalive_expiry=settings.pool_keepalive_expiry,
        )

    def to_httpx(self) -> httpx.Limits:
        return httpx.Limits(
            max_keepalive_connections=self.max_keepalive,
            max_connections=self.max_connections,
            keepalive_expiry=self.keepalive_expiry,
        )


class HttpClientFactory:
    """Factory for the single httpx client the application shares."""

    @staticmethod
    def create_client(settings: Settings) -> httpx.AsyncClient:
        """
        Create the HTTP client shared by all upstream collaborators.

        Redirects are followed since APOD image URLs often point at a
        mirror. ``SSL_CERT_FILE`` overrides the CA bundle when set.
        """
        limits = ConnectionLimits.from_settings(settings)
        timeout = httpx.Timeout(
            connect=settings.http_connect_timeout,
            read=settings.http_read_timeout,
            write=settings.http_write_timeout,
            pool=settings.http_pool_timeout,
        )
        client = httpx.AsyncClient(
            limits=limits.to_httpx(),
            timeout=timeout,
            verify=os.getenv("SSL_CERT_FILE", True),
            follow_redirects=True,
            headers=HttpClientFactory.get_default_headers(settings),
        )
        info(
            LogRecord(
                event=LogEvent.CONFIGURATION.value,
                message="HTTP client configured",
                data={
                    "pool_max_keepalive": limits.max_keepalive,
                    "pool_max_connections": limits.max_connections,
                    "read_timeout": settings.http_read_timeout,
                },
            )
        )
        return client

    @staticmethod
    def get_default_headers(settings: Settings) -> Dict[str, str]:
        return {
            "User-Agent": settings.user_agent,
            "Accept-Charset": "utf-8",
        }

    @staticmethod
    async def close_client(client: Optional[httpx.AsyncClient]) -> None:
        """Close ``client``, logging rather than raising on failure."""
        if client is None or client.is_closed:
            return
        try:
            await client.aclose()
        except (httpx.HTTPError, OSError) as e:
            warning(
                LogRecord(
                    event=LogEvent.CONFIGURATION.value,
                    message="Error closing HTTP client",
                ),
                exc=e,
            )
