"""Run the relay: ``python -m ledgerrelay`` or the ``ledgerrelay`` script.

Reads a ``.env`` file if present, validates configuration, then serves
the app with uvicorn. Missing configuration exits before binding the port.
"""

from __future__ import annotations

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from ledgerrelay.app import create_app
from ledgerrelay.config import ConfigError, RelayConfig

logger = logging.getLogger("ledgerrelay")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)


def main() -> None:
    load_dotenv()
    configure_logging()

    try:
        config = RelayConfig.from_env()
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)
    logger.info(
        "Relaying to %s/%s@%s, pinging %s%s every %ss.",
        config.github_owner, config.github_repo, config.github_branch,
        config.keepalive_endpoint, config.keepalive_path, config.keepalive_interval_secs,
    )

    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
