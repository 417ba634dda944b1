from __future__ import annotations

import logging

import uvicorn

from taskdeck.api import create_app
from taskdeck.config import get_config
from taskdeck.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run() -> None:
    cfg = get_config()
    setup_logging(log_dir=cfg.log_dir, console_level=cfg.log_level)

    app = create_app(cfg)
    logger.info("API server running on port %s", cfg.api_port)
    uvicorn.run(app, host=cfg.api_host, port=int(cfg.api_port), log_config=None)


if __name__ == "__main__":
    run()
