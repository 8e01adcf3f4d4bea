from __future__ import annotations

import logging.config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Route every logger through one stream handler at ``level``.

    Uvicorn's own loggers are left in place; only the root and the service's
    package logger are configured here.
    """
    level = level.upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                }
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {"hrm_user_service": {"level": level, "propagate": True}},
        }
    )
