import logging

from .settings import settings

ISO_FMT = "%Y-%m-%dT%H:%M:%S%z"

def configure_logging(level: int | str | None = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
        datefmt=ISO_FMT,
    )
