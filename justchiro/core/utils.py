"""
Shared helpers
"""
import ipaddress
from datetime import datetime, timezone
from typing import Optional, Sequence


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def total_pages(total: int, limit: int) -> int:
    """Ceil division for pagination metadata."""
    if limit <= 0:
        return 0
    return (total + limit - 1) // limit


def paginate(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages(total, limit),
    }


def like_pattern(term: str) -> str:
    """Substring pattern for ILIKE with LIKE wildcards escaped (escape char '\\')."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _is_trusted(address: Optional[str], trusted_proxies: Sequence[str]) -> bool:
    if not address or not trusted_proxies:
        return False
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return any(ip in ipaddress.ip_network(proxy, strict=False) for proxy in trusted_proxies)


def client_ip(request, trusted_proxies: Sequence[str] = ()) -> Optional[str]:
    """
    Caller address.

    X-Forwarded-For is only read when the socket peer is one of
    `trusted_proxies` (addresses or CIDR ranges). The client is then the
    right-most hop that is not itself a trusted proxy; everything left of
    it was supplied by the caller.
    """
    peer = request.client.host if request.client else None
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded or not _is_trusted(peer, trusted_proxies):
        return peer

    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if not _is_trusted(hop, trusted_proxies):
            return hop
    return hops[0] if hops else peer
