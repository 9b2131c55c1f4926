"""Membership entrypoint.

Run with:
  python -m membership
"""

import uvicorn

from membership.config import Settings, validate_runtime_config
from membership.logs import configure_logging


def main() -> None:
    settings = Settings.from_env()
    validate_runtime_config(settings)
    configure_logging(settings.log_level)
    uvicorn.run("membership.app:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    main()
