from __future__ import annotations

import ipaddress
import secrets
from dataclasses import dataclass
from functools import lru_cache

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@dataclass(frozen=True, slots=True)
class InternalAccessDecision:
    allowed: bool
    reason: str
    client_ip: str | None


@lru_cache(maxsize=32)
def _networks(cidr_list: str) -> tuple[IPNetwork, ...]:
    networks: list[IPNetwork] = []
    for chunk in cidr_list.split(","):
        candidate = chunk.strip()
        if not candidate:
            continue
        try:
            networks.append(ipaddress.ip_network(candidate, strict=False))
        except ValueError:
            # Malformed entries never widen access.
            continue
    return tuple(networks)


def _normalize_ip(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def ip_in_networks(*, client_ip: str | None, cidr_list: str) -> bool:
    normalized = _normalize_ip(client_ip)
    if normalized is None:
        return False
    address = ipaddress.ip_address(normalized)
    return any(address in network for network in _networks(cidr_list))


def resolve_client_ip(
    *,
    peer_host: str | None,
    forwarded_for: str | None,
    trusted_proxies: str = "",
) -> str | None:
    peer_ip = _normalize_ip(peer_host)
    if not forwarded_for or not ip_in_networks(client_ip=peer_ip, cidr_list=trusted_proxies):
        return peer_ip
    return _normalize_ip(forwarded_for.split(",", maxsplit=1)[0])


def token_matches(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token.encode(), received_token.encode())


def evaluate_internal_access(
    *,
    received_token: str | None,
    peer_host: str | None,
    forwarded_for: str | None,
    expected_token: str,
    allowlist: str,
    trusted_proxies: str,
) -> InternalAccessDecision:
    """Internal activity hooks need both the shared token and an allowlisted source address."""
    client_ip = resolve_client_ip(
        peer_host=peer_host,
        forwarded_for=forwarded_for,
        trusted_proxies=trusted_proxies,
    )
    if not token_matches(expected_token=expected_token, received_token=received_token):
        return InternalAccessDecision(allowed=False, reason="invalid_token", client_ip=client_ip)
    if not ip_in_networks(client_ip=client_ip, cidr_list=allowlist):
        return InternalAccessDecision(allowed=False, reason="ip_not_allowed", client_ip=client_ip)
    return InternalAccessDecision(allowed=True, reason="ok", client_ip=client_ip)
