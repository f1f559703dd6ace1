"""taskboard entrypoint.

Run with:
  python -m taskboard
"""

import os

import uvicorn

from taskboard.config import load_settings
from taskboard.logging_setup import setup_logging


def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    host = os.getenv("TASKBOARD_HOST", "0.0.0.0")
    port = int(os.getenv("TASKBOARD_PORT", "8000"))
    reload = os.getenv("TASKBOARD_RELOAD", "false").lower() in {"1", "true", "yes", "y"}
    uvicorn.run("taskboard.app:create_app", factory=True, host=host, port=port, reload=reload, log_config=None)


if __name__ == "__main__":
    main()
