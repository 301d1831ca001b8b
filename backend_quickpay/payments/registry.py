"""
Username -> address resolution with a local fallback cache.

Two tiers: the on-chain registry is authoritative and every answer it gives
overwrites the cache (including "not registered", which evicts). The cache is
read only when the registry call itself fails.
"""

from __future__ import annotations

import re
import threading
from typing import Callable

from backend_quickpay.core.exceptions import NotFoundError, RemoteServiceFailure
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

REGISTRY_SERVICE = "username_registry"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_HEX_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_hex_address(value: str) -> bool:
    return bool(_HEX_ADDRESS_RE.match(value or ""))


class UsernameRegistry:
    """
    Resolve @usernames to addresses.

    remote_lookup(username) returns the registered address (ZERO_ADDRESS when
    unregistered) and may raise any exception on transport/chain failure.
    """

    def __init__(
        self,
        remote_lookup: Callable[[str], str],
        cache: dict[str, str] | None = None,
    ) -> None:
        self._remote_lookup = remote_lookup
        self._cache: dict[str, str] = dict(cache or {})
        self._lock = threading.Lock()

    def cached(self, username: str) -> str | None:
        with self._lock:
            return self._cache.get(username)

    def resolve(self, username: str) -> str:
        """
        Return the address for username. Hex addresses pass through unchanged.

        Raises NotFoundError when the registry says the name is unregistered,
        RemoteServiceFailure when the registry fails and nothing is cached.
        """
        username = (username or "").strip().lstrip("@")
        if is_hex_address(username):
            return username
        try:
            address = self._remote_lookup(username)
        except Exception as e:
            cached = self.cached(username)
            if cached:
                logger.warning("registry_lookup_failed_using_cache", username=username, error=str(e))
                return cached
            logger.warning("registry_lookup_failed", username=username, error=str(e))
            raise RemoteServiceFailure(REGISTRY_SERVICE, str(e)) from e

        if not address or address.lower() == ZERO_ADDRESS:
            with self._lock:
                self._cache.pop(username, None)
            raise NotFoundError(f"Username @{username} is not registered.")
        with self._lock:
            self._cache[username] = address
        return address
