"""Reverse DNS lookups for displayed endpoint addresses."""

from __future__ import annotations

import logging
import socket
from typing import Callable, Dict, Optional, Protocol, Tuple

from .addresses import IpAddress

logger = logging.getLogger(__name__)


class Resolver(Protocol):
    def resolve(self, address: IpAddress) -> Optional[str]:  # pragma: no cover - protocol definition
        ...


class HostnameResolver:
    """Resolves addresses via ``socket.gethostbyaddr`` and remembers the answers.

    Failed lookups are cached as ``None`` as well, so an unreachable resolver
    costs one timeout per address rather than one per flow.
    """

    def __init__(
        self,
        lookup: Callable[[str], Tuple[str, list, list]] = socket.gethostbyaddr,
    ) -> None:
        self._lookup = lookup
        self._cache: Dict[IpAddress, Optional[str]] = {}

    def resolve(self, address: IpAddress) -> Optional[str]:
        if address in self._cache:
            return self._cache[address]
        try:
            name: Optional[str] = self._lookup(str(address))[0]
        except (OSError, UnicodeError):
            logger.debug("Reverse lookup failed for %s", address, exc_info=True)
            name = None
        self._cache[address] = name
        return name


__all__ = ["Resolver", "HostnameResolver"]
