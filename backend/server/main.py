"""
Development entry point.

Loads .env, reads HOST / PORT from AppConfig and serves server.asgi:app
with uvicorn.
"""

from __future__ import annotations

import uvicorn
from dotenv import load_dotenv

from config import AppConfig
from observability.logger import log_event


def main() -> None:
    """Run the capture server."""
    load_dotenv()
    config = AppConfig.load_from_env()

    log_event({
        "event_type": "SERVER_STARTING",
        "env": config.env,
        "host": config.host,
        "port": config.port,
    })

    uvicorn.run(
        "server.asgi:app",
        host=config.host,
        port=config.port,
        log_level="info",
        reload=config.env == "dev",  # Dev mode only
    )


if __name__ == "__main__":
    main()
