"""chatsync API launcher.

Serves the persistence REST surface (stores, chats, llms, metrics, workspace)
from the chatsync package. Either point uvicorn at the module:

    uvicorn main:app --reload

or run it directly, which binds API_HOST / API_PORT from settings:

    python main.py

The app instance lives here rather than in chatsync.app so importing the
package has no side effects and tests can build apps with their own settings.
"""

import uvicorn

from chatsync.app import add_request_id_middleware, create_app
from chatsync.config import get_settings

settings = get_settings()

app = create_app(settings)
# Registered last so it wraps everything else and tags every response
add_request_id_middleware(app)


def main() -> None:
    """Serve the app with the configured bind address."""
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()

__all__ = ["app", "main"]
