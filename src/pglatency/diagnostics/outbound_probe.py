# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Outbound Connectivity Diagnostic.

Runs a battery of independent reachability probes from inside the deployed
process so that egress restrictions (VPC firewalls, blocked ports) can be
told apart from database latency problems. Served by ``GET /test-outbound``.

Probes (each bounded by a 3 second timeout, all run concurrently):
    - HTTPS GET https://api.ipify.org?format=json
    - HTTP GET http://httpbin.org/ip
    - DNS resolve of google.com via the system resolver
    - DNS A query for example.com sent directly to 8.8.8.8 over UDP 53
    - UDP STUN binding request to stun.l.google.com:19302
    - TCP connect to github.com:22, smtp.gmail.com:587,
      www.cloudflare.com:8443, ftp.debian.org:21
    - TCP connect to the configured database host/port, if any

``run()`` never raises: every probe error becomes a FAILED result.
"""

from __future__ import annotations

import asyncio
import logging
import os
import socket
import struct
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import httpx

from pglatency.enums import EnumOutboundProbeStatus
from pglatency.models import (
    ModelOutboundProbeResult,
    ModelOutboundReport,
    ModelOutboundSummary,
)
from pglatency.utils.util_error_sanitization import sanitize_error_message

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT_SECONDS = 3.0

HTTPS_TARGET_URL = "https://api.ipify.org?format=json"
HTTP_TARGET_URL = "http://httpbin.org/ip"
DNS_TARGET_HOST = "google.com"
DIRECT_DNS_SERVER = ("8.8.8.8", 53)
DIRECT_DNS_QUERY_HOST = "example.com"
STUN_TARGET = ("stun.l.google.com", 19302)
TCP_TARGETS: tuple[tuple[str, str, int], ...] = (
    ("TCP 22 (SSH)", "github.com", 22),
    ("TCP 587 (SMTP)", "smtp.gmail.com", 587),
    ("TCP 8443", "www.cloudflare.com", 8443),
    ("TCP 21 (FTP)", "ftp.debian.org", 21),
)

# RFC 5389 binding request header fields
STUN_BINDING_REQUEST = 0x0001
STUN_BINDING_SUCCESS = 0x0101
STUN_MAGIC_COOKIE = 0x2112A442

# RFC 1035 header flags and record constants
DNS_FLAG_RECURSION_DESIRED = 0x0100
DNS_FLAG_RESPONSE = 0x8000
DNS_RCODE_MASK = 0x000F
DNS_TYPE_A = 1
DNS_CLASS_IN = 1


def build_stun_request(transaction_id: bytes) -> bytes:
    """Encode a STUN binding request with no attributes."""
    if len(transaction_id) != 12:
        raise ValueError("STUN transaction id must be 12 bytes")
    return (
        struct.pack("!HHI", STUN_BINDING_REQUEST, 0, STUN_MAGIC_COOKIE)
        + transaction_id
    )


def is_stun_success(data: bytes, transaction_id: bytes) -> bool:
    """Return True if ``data`` is a binding success for ``transaction_id``."""
    if len(data) < 20:
        return False
    message_type, _length, cookie = struct.unpack("!HHI", data[:8])
    return (
        message_type == STUN_BINDING_SUCCESS
        and cookie == STUN_MAGIC_COOKIE
        and data[8:20] == transaction_id
    )


def build_dns_query(name: str, query_id: int) -> bytes:
    """Encode a recursive A/IN query for ``name``."""
    header = struct.pack(
        "!HHHHHH", query_id, DNS_FLAG_RECURSION_DESIRED, 1, 0, 0, 0
    )
    question = b"".join(
        bytes([len(label)]) + label.encode("ascii")
        for label in name.rstrip(".").split(".")
    )
    return header + question + b"\x00" + struct.pack("!HH", DNS_TYPE_A, DNS_CLASS_IN)


def _skip_dns_name(data: bytes, offset: int) -> int:
    while True:
        if offset >= len(data):
            raise ValueError("Truncated DNS name")
        length = data[offset]
        if length & 0xC0 == 0xC0:
            return offset + 2
        if length == 0:
            return offset + 1
        offset += 1 + length


def parse_dns_a_records(data: bytes, query_id: int) -> list[str]:
    """Return the IPv4 addresses answered in a DNS response.

    Raises:
        ValueError: If the response is malformed, answers another query,
            or carries a non-zero RCODE.
    """
    if len(data) < 12:
        raise ValueError("DNS response shorter than header")
    response_id, flags, qdcount, ancount, _ns, _ar = struct.unpack(
        "!HHHHHH", data[:12]
    )
    if response_id != query_id or not flags & DNS_FLAG_RESPONSE:
        raise ValueError("DNS response does not match query")
    rcode = flags & DNS_RCODE_MASK
    if rcode:
        raise ValueError(f"DNS server returned RCODE {rcode}")

    offset = 12
    for _ in range(qdcount):
        offset = _skip_dns_name(data, offset) + 4

    addresses: list[str] = []
    for _ in range(ancount):
        offset = _skip_dns_name(data, offset)
        if offset + 10 > len(data):
            raise ValueError("Truncated DNS answer")
        rtype, rclass, _ttl, rdlength = struct.unpack(
            "!HHIH", data[offset : offset + 10]
        )
        offset += 10
        rdata = data[offset : offset + rdlength]
        if len(rdata) != rdlength:
            raise ValueError("Truncated DNS answer")
        if rtype == DNS_TYPE_A and rclass == DNS_CLASS_IN and rdlength == 4:
            addresses.append(socket.inet_ntoa(rdata))
        offset += rdlength
    return addresses


class _DatagramExchange(asyncio.DatagramProtocol):
    """Send one datagram and resolve with the first reply ``accept`` takes."""

    def __init__(self, request: bytes, accept: Callable[[bytes], bool]) -> None:
        self._request = request
        self._accept = accept
        self.response: asyncio.Future[bytes] = (
            asyncio.get_running_loop().create_future()
        )

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        transport.sendto(self._request)  # type: ignore[attr-defined]

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        if not self.response.done() and self._accept(data):
            self.response.set_result(data)

    def error_received(self, exc: Exception) -> None:
        if not self.response.done():
            self.response.set_exception(exc)


class OutboundProbe:
    """Reachability probe battery.

    Args:
        database_target: ``(host, port)`` of the configured database, or None.
        timeout_seconds: Per-probe timeout.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        database_target: tuple[str, int] | None = None,
        *,
        timeout_seconds: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._database_target = database_target
        self._timeout = timeout_seconds
        self._transport = transport

    async def run(self) -> ModelOutboundReport:
        """Run every probe concurrently and summarize the results."""
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        ) as client:
            probes: list[Awaitable[ModelOutboundProbeResult]] = [
                self._guard(
                    "HTTPS (TCP 443)",
                    "api.ipify.org",
                    lambda: self.probe_http(client, HTTPS_TARGET_URL),
                ),
                self._guard(
                    "HTTP (TCP 80)",
                    "httpbin.org",
                    lambda: self.probe_http(client, HTTP_TARGET_URL),
                ),
                self._guard(
                    "DNS (UDP 53)",
                    DNS_TARGET_HOST,
                    lambda: self.probe_dns(DNS_TARGET_HOST),
                ),
                self._guard(
                    "UDP 53 to 8.8.8.8",
                    "Google DNS",
                    lambda: self.probe_dns_direct(
                        *DIRECT_DNS_SERVER, DIRECT_DNS_QUERY_HOST
                    ),
                ),
                self._guard(
                    "UDP STUN",
                    f"{STUN_TARGET[0]}:{STUN_TARGET[1]}",
                    lambda: self.probe_stun(*STUN_TARGET),
                ),
            ]
            for test, host, port in TCP_TARGETS:
                probes.append(
                    self._guard(
                        test,
                        f"{host}:{port}",
                        lambda host=host, port=port: self.probe_tcp(host, port),
                    )
                )
            if self._database_target is not None:
                db_host, db_port = self._database_target
                probes.append(
                    self._guard(
                        f"TCP {db_port} (Postgres)",
                        f"{db_host}:{db_port}",
                        lambda: self.probe_tcp(db_host, db_port),
                    )
                )

            results = tuple(await asyncio.gather(*probes))

        passed = sum(1 for r in results if r.status == EnumOutboundProbeStatus.OK)
        report = ModelOutboundReport(
            timestamp=datetime.now(UTC),
            tests=results,
            summary=ModelOutboundSummary(
                passed=passed,
                failed=len(results) - passed,
                total=len(results),
            ),
        )
        logger.info(
            "Outbound diagnostic: %d/%d probes passed",
            report.summary.passed,
            report.summary.total,
        )
        return report

    async def _guard(
        self,
        test: str,
        target: str,
        probe: Callable[[], Awaitable[list[str] | None]],
    ) -> ModelOutboundProbeResult:
        start_ns = time.perf_counter_ns()
        try:
            detail = await asyncio.wait_for(probe(), timeout=self._timeout)
        except TimeoutError:
            return ModelOutboundProbeResult(
                test=test,
                target=target,
                status=EnumOutboundProbeStatus.FAILED,
                error=f"Timed out after {self._timeout}s",
            )
        except Exception as e:
            return ModelOutboundProbeResult(
                test=test,
                target=target,
                status=EnumOutboundProbeStatus.FAILED,
                error=sanitize_error_message(e),
            )
        elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
        return ModelOutboundProbeResult(
            test=test,
            target=target,
            status=EnumOutboundProbeStatus.OK,
            latency_ms=round(elapsed_ms, 2),
            result=detail,
        )

    async def probe_http(self, client: httpx.AsyncClient, url: str) -> None:
        response = await client.get(url)
        response.raise_for_status()

    async def probe_dns(self, host: str) -> list[str]:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(
            host, None, family=socket.AF_INET, type=socket.SOCK_STREAM
        )
        return sorted({info[4][0] for info in infos})

    async def probe_tcp(self, host: str, port: int) -> None:
        _reader, writer = await asyncio.open_connection(host, port)
        writer.close()
        await writer.wait_closed()

    async def probe_stun(self, host: str, port: int) -> None:
        transaction_id = os.urandom(12)
        await self._exchange_datagram(
            host,
            port,
            build_stun_request(transaction_id),
            lambda data: is_stun_success(data, transaction_id),
        )

    async def probe_dns_direct(self, server: str, port: int, name: str) -> list[str]:
        """Query ``server`` over raw UDP, bypassing the system resolver."""
        query_id = int.from_bytes(os.urandom(2), "big")
        response = await self._exchange_datagram(
            server,
            port,
            build_dns_query(name, query_id),
            lambda data: data[:2] == query_id.to_bytes(2, "big"),
        )
        addresses = parse_dns_a_records(response, query_id)
        if not addresses:
            raise ValueError(f"No A records for {name}")
        return sorted(set(addresses))

    async def _exchange_datagram(
        self,
        host: str,
        port: int,
        request: bytes,
        accept: Callable[[bytes], bool],
    ) -> bytes:
        loop = asyncio.get_running_loop()
        transport, protocol = await loop.create_datagram_endpoint(
            lambda: _DatagramExchange(request, accept),
            remote_addr=(host, port),
        )
        try:
            return await protocol.response
        finally:
            transport.close()


__all__: list[str] = [
    "DEFAULT_PROBE_TIMEOUT_SECONDS",
    "OutboundProbe",
    "build_dns_query",
    "build_stun_request",
    "is_stun_success",
    "parse_dns_a_records",
]
