"""
failsafe.__main__ — Entry point for ``python -m failsafe``
===========================================================

Serves the API with uvicorn.  ``HOST`` / ``PORT`` env vars override the
bind address (default ``0.0.0.0:5000``).
"""

from __future__ import annotations

import logging
import os

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("failsafe")


def main() -> None:
    load_dotenv()

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "5000"))

    logger.info("Starting FailSafe API on %s:%d…", host, port)
    uvicorn.run("failsafe.api.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
