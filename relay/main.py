"""
Entry point for the relay server.

Run with `python -m relay.main` or `relay-server`, or point uvicorn at
`relay.main:app`.
"""

import uvicorn

from .app.factory import create_app
from .config import get_config
from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

app = create_app()


def main() -> None:
    """Run the relay server with uvicorn using the configured host and port."""
    config = get_config()
    logger.info("Starting uvicorn", host=config.server.host, port=config.server.port)
    uvicorn.run(app, host=config.server.host, port=config.server.port, log_config=None)


if __name__ == "__main__":
    main()
