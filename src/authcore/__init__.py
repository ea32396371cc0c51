"""authcore -- async client for an authentication core service.

The client negotiates a CDI (wire-protocol) version with the core, sends
authenticated requests through a single pooled :mod:`httpx` connection, and
lets applications override behaviours such as email delivery by registering
*recipes* that implement *capability* interfaces.

Typical usage::

    from authcore import AppInfo, ConnectionConfig, CoreClient

    async with CoreClient(
        AppInfo(app_name="shop", api_base_path="/auth"),
        ConnectionConfig(uri="https://core.example", api_key="..."),
        recipes=[DefaultMailer(), ShopMailer()],
    ) as client:
        version = await client.api_version()

Modules:
    models: Pydantic models for connection settings and core responses.
    versioning: CDI version selection and caching.
    client: Request pipeline and client facade.
    recipes: Recipe base classes and the capability registry.
    ingredients: Capability interfaces (email delivery).
    config: Settings resolution from files and environment.
    exceptions: Exception hierarchy.
"""

from authcore.client import CoreClient, RequestPipeline
from authcore.models import AppInfo, ConnectionConfig

__version__ = "0.1.0"

__all__ = ["AppInfo", "ConnectionConfig", "CoreClient", "RequestPipeline", "__version__"]
