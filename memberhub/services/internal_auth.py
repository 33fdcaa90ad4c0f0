from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

INTERNAL_TOKEN_HEADER = "X-Internal-Token"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


@lru_cache(maxsize=32)
def parse_networks(raw: str) -> tuple[IPNetwork, ...]:
    networks: list[IPNetwork] = []
    for entry in (part.strip() for part in raw.split(",")):
        if not entry:
            continue
        try:
            # a bare address becomes a single-host network
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def _as_ip(value: str | None) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if not value or not value.strip():
        return None
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    address = _as_ip(client_ip)
    if address is None:
        return False
    return any(address in network for network in parse_networks(allowlist))


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    peer = _as_ip(request.client.host if request.client is not None else None)
    peer_ip = str(peer) if peer is not None else None

    forwarded_for = request.headers.get("X-Forwarded-For")
    if not forwarded_for or not is_client_ip_allowed(client_ip=peer_ip, allowlist=trusted_proxies):
        return peer_ip

    origin = _as_ip(forwarded_for.split(",", maxsplit=1)[0])
    return str(origin) if origin is not None else None


def is_internal_request_allowed(
    request: Request,
    *,
    expected_token: str,
    allowlist: str,
    trusted_proxies: str = "",
) -> bool:
    if not is_valid_internal_token(
        expected_token=expected_token,
        received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
    ):
        return False
    client_ip = extract_client_ip(request, trusted_proxies=trusted_proxies)
    return is_client_ip_allowed(client_ip=client_ip, allowlist=allowlist)
