"""HTTP client module for authcore.

Classes:
    :class:`RequestPipeline` -- authenticated, version-aware request dispatch
    backed by :class:`httpx.AsyncClient`.
    :class:`CoreClient` -- facade composing the pipeline with the recipe
    registry.

Example::

    from authcore.client import CoreClient

    async with CoreClient(app_info, connection) as client:
        status = await client.remove_user(user_id)
"""

from authcore.client.core import CoreClient
from authcore.client.pipeline import RequestPipeline, join_url

__all__ = ["CoreClient", "RequestPipeline", "join_url"]
