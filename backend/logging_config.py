import logging
import logging.config

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def build_logging_config(level: str = "INFO") -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            "hypercorn.error": {"handlers": ["console"], "level": level, "propagate": False},
            "hypercorn.access": {"handlers": ["console"], "level": level, "propagate": False},
            # twilio's http client logs every request body at INFO
            "twilio.http_client": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        },
        "root": {"handlers": ["console"], "level": level},
    }


def setup_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(build_logging_config(level))
    logging.getLogger(__name__).info("Logging initialized (level=%s)", level)
