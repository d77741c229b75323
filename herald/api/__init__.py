"""Herald HTTP API layer.

Public API
----------
create_app
    Application factory that configures the Falcon ASGI app with health
    endpoints and, when dependencies are provided, the GitHub webhook and
    coverage status endpoints.
"""

from herald.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
