"""
Security utilities: network identity hashing, masking and input sanitisation.
"""

import hashlib
import logging
from typing import Optional

from app.core.settings import settings

logger = logging.getLogger(__name__)


def hash_ip_address(ip_address: Optional[str]) -> Optional[str]:
    """
    Hash a source address into the network identity used for rate limiting,
    duplicate detection and trust history.

    Uses SHA-256 with a configurable salt. Stores only the first 16 characters
    (64 bits), enough to key per-reporter history.

    Args:
        ip_address: Raw IP address string (IPv4 or IPv6)

    Returns:
        Hashed identity (first 16 chars) or None if input is None/empty
    """
    if not ip_address or not ip_address.strip():
        return None

    hashed = hashlib.sha256(f"{settings.IP_HASH_SALT}{ip_address.strip()}".encode()).hexdigest()
    return hashed[:16]


def mask_ip_address(ip_address: Optional[str]) -> Optional[str]:
    """
    Mask an address or identity for log output.

    For IPv4: 192.168.1.1 → 192.168.x.x
    For IPv6: 2001:0db8::1 → 2001:0db8::x
    For hashed identities: first 6 characters followed by "…"
    """
    if not ip_address or not ip_address.strip():
        return None

    if '.' in ip_address:
        parts = ip_address.split('.')
        if len(parts) == 4:
            return f"{parts[0]}.{parts[1]}.x.x"

    if ':' in ip_address:
        parts = ip_address.split(':')
        if len(parts) > 2:
            return ':'.join(parts[:2]) + '::x'

    return ip_address[:6] + "…"


def sanitize_text(value: str) -> str:
    """Strip angle brackets and surrounding whitespace from free text."""
    return value.replace("<", "").replace(">", "").strip()
