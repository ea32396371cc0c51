"""CDI version negotiation.

The core advertises the wire-protocol versions it speaks through
``GET /apiversion``. :class:`VersionNegotiator` fetches that list once,
selects a single version with :func:`select_version`, and caches it for
the lifetime of the client. Concurrent first-time callers share a single
discovery request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Collection, Optional, Sequence

from authcore.exceptions import NoSupportedVersion

logger = logging.getLogger(__name__)

VersionFetcher = Callable[[], Awaitable[Sequence[str]]]


def select_version(
    offered: Sequence[str],
    supported: Optional[Collection[str]] = None,
) -> str:
    """Pick the CDI version to use from the list offered by the core.

    The core orders *offered* by its own preference. Without a *supported*
    collection the first (most preferred) offered version is returned. With
    one, the first offered version that is also in *supported* wins.

    Args:
        offered: Versions returned by version discovery, most preferred first.
        supported: Versions this client understands, or ``None`` to accept
            whatever the core prefers.

    Returns:
        The selected version string.

    Raises:
        NoSupportedVersion: If *offered* is empty or shares no version with
            *supported*.
    """
    if not offered:
        raise NoSupportedVersion("Core did not offer any CDI version")

    if supported is None:
        return offered[0]

    for version in offered:
        if version in supported:
            return version

    raise NoSupportedVersion(
        f"No mutually supported CDI version: core offers {', '.join(offered)}; "
        f"client supports {', '.join(sorted(supported)) or '(none)'}"
    )


class VersionNegotiator:
    """Resolves and caches the CDI version for one client session.

    The cache goes from empty to filled on the first successful
    :meth:`resolve` and back to empty only through :meth:`invalidate`.
    While discovery is in flight every caller awaits the same task and
    receives its single result or error. A failed discovery leaves the
    cache empty, so the next call retries.

    Args:
        fetch: Coroutine function returning the raw version list from the
            core (typically :meth:`RequestPipeline.api_versions`).
        supported: Optional collection of versions this client understands,
            forwarded to :func:`select_version`.
    """

    def __init__(
        self,
        fetch: VersionFetcher,
        supported: Optional[Collection[str]] = None,
    ) -> None:
        self._fetch = fetch
        self._supported = frozenset(supported) if supported is not None else None
        self._version: Optional[str] = None
        self._pending: Optional[asyncio.Task[str]] = None

    @property
    def cached(self) -> Optional[str]:
        """The cached version, or ``None`` if none has been resolved."""
        return self._version

    async def resolve(self) -> str:
        """Return the negotiated version, running discovery if necessary.

        Raises:
            TransportError: If the core cannot be reached.
            ProtocolError: If the discovery body is not a version list.
            NoSupportedVersion: If no usable version was offered.
        """
        version = self._version
        if version is not None:
            return version

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._negotiate())
        # Shielded so one cancelled caller does not abort the others.
        return await asyncio.shield(self._pending)

    async def _negotiate(self) -> str:
        try:
            offered = await self._fetch()
            selected = select_version(offered, self._supported)
            logger.debug("Negotiated CDI version %s (offered: %s)", selected, offered)
            self._version = selected
            return selected
        finally:
            self._pending = None

    def invalidate(self) -> None:
        """Forget the cached version so the next :meth:`resolve` re-negotiates."""
        if self._version is not None:
            logger.debug("Invalidating cached CDI version %s", self._version)
        self._version = None
