"""
InfluxDB Transports
===================

Move request bodies to InfluxDB and bring response bodies back.

- HttpTransport: httpx over the /query and /write endpoints. Responses are
  spooled to a temporary file so ResultSet can rewind and stream them.
- SocketTransport: fire-and-forget line protocol writes over UDP or TCP.

Usage:
    transport = HttpTransport("http://localhost:8086", timeout=5)
    response = transport.execute("GET", "/query", {"q": "SHOW DATABASES"})
    print(response.status, response.read())
"""

import logging
import socket
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional, Tuple, Union

import httpx

from ...core.exceptions import ClientError, ValidationError

logger = logging.getLogger(__name__)

# Responses larger than this spill from memory to disk
SPOOL_MAX_MEMORY_BYTES = 1_000_000

SOCKET_PROTOCOLS = ("udp", "tcp")


@dataclass
class TransportResponse:
    """Status code plus a body that is either bytes or a rewound stream."""

    status: int
    body: Union[bytes, BinaryIO]

    def read(self) -> str:
        """Whole body as text; a stream body is rewound afterwards."""
        if isinstance(self.body, (bytes, bytearray)):
            return bytes(self.body).decode("utf-8", errors="replace")
        position = self.body.tell()
        try:
            data = self.body.read()
        finally:
            self.body.seek(position)
        return data.decode("utf-8", errors="replace")

    def close(self) -> None:
        if not isinstance(self.body, (bytes, bytearray)):
            self.body.close()


class Transport(ABC):
    """Executes one request against InfluxDB."""

    @abstractmethod
    def execute(
        self,
        method: str,
        url_path: str,
        query_params: Optional[Dict[str, Any]] = None,
        body: Optional[Union[str, bytes]] = None,
        auth: Optional[Tuple[str, str]] = None
    ) -> TransportResponse:
        """
        Args:
            method: "GET" or "POST"
            url_path: Endpoint path, e.g. "/query" or "/write"
            query_params: URL query parameters
            body: Request body (line protocol for writes)
            auth: (username, password) pair for basic auth

        Returns:
            TransportResponse

        Raises:
            ClientError: The request could not be delivered
        """

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


# =================================================================
# HTTP
# =================================================================

class HttpTransport(Transport):
    """
    Synchronous httpx transport.

    The underlying httpx.Client is created on first use and reused until
    close(). A custom httpx transport (e.g. httpx.MockTransport) can be
    injected for tests.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        spool_max_memory: int = SPOOL_MAX_MEMORY_BYTES
    ):
        """
        Args:
            base_url: Scheme, host and port, e.g. "http://localhost:8086"
            timeout: Request timeout in seconds, 0 or None for no timeout
            connect_timeout: Connect timeout in seconds, 0 or None for no timeout
            transport: Optional httpx transport override
            spool_max_memory: Bytes kept in memory before spooling to disk
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or None
        self.connect_timeout = connect_timeout or None
        self.spool_max_memory = spool_max_memory
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                transport=self._transport,
            )
            logger.debug(f"✅ HTTP transport ready: {self.base_url}")
        return self._client

    def execute(self, method, url_path, query_params=None, body=None, auth=None):
        spool = tempfile.SpooledTemporaryFile(max_size=self.spool_max_memory)
        try:
            with self.client.stream(
                method.upper(),
                url_path,
                params=query_params,
                content=body,
                auth=auth,
            ) as response:
                for chunk in response.iter_bytes():
                    spool.write(chunk)
                status = response.status_code
        except httpx.HTTPError as e:
            spool.close()
            logger.error(f"❌ {method.upper()} {url_path} failed: {e}")
            raise ClientError(0, str(e)) from e

        spool.seek(0)
        logger.debug(f"📡 {method.upper()} {url_path} -> {status}")
        return TransportResponse(status=status, body=spool)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("🔒 HTTP transport closed")


# =================================================================
# UDP / TCP
# =================================================================

class SocketTransport(Transport):
    """
    Write-only line protocol transport over UDP or TCP.

    Queries are not possible over a socket listener; only POST bodies
    are sent. A successful send is reported as status 204.
    """

    def __init__(self, host: str, port: int, protocol: str = "udp"):
        protocol = protocol.lower()
        if protocol not in SOCKET_PROTOCOLS:
            raise ValidationError(
                f"Unsupported socket protocol: {protocol}", field="protocol", value=protocol
            )
        self.host = host
        self.port = int(port)
        self.protocol = protocol
        self._socket: Optional[socket.socket] = None

    def _connect(self) -> socket.socket:
        if self._socket is None:
            if self.protocol == "udp":
                self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            else:
                self._socket = socket.create_connection((self.host, self.port))
        return self._socket

    def execute(self, method, url_path, query_params=None, body=None, auth=None):
        if method.upper() != "POST":
            raise ClientError(0, f"{self.protocol.upper()} transport only supports writes")

        data = body.encode("utf-8") if isinstance(body, str) else (body or b"")
        try:
            sock = self._connect()
            if self.protocol == "udp":
                sock.sendto(data, (self.host, self.port))
            else:
                # Socket listeners split on newlines
                sock.sendall(data if data.endswith(b"\n") else data + b"\n")
        except OSError as e:
            self.close()
            raise ClientError(0, str(e)) from e

        logger.debug(f"📤 Sent {len(data)} bytes to {self.protocol}://{self.host}:{self.port}")
        return TransportResponse(status=204, body=b"")

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
