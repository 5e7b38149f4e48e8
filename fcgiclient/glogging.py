#
# This file is part of fcgiclient released under the MIT license.
# See the NOTICE for more information.

import copy
import logging
from logging.config import dictConfig

LOG_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG
}

CONFIG_DEFAULTS = dict(
    version=1,
    disable_existing_loggers=False,

    loggers={
        "fcgiclient": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False,
        }
    },
    handlers={
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "generic",
            "stream": "ext://sys.stderr"
        }
    },
    formatters={
        "generic": {
            "format": "%(asctime)s [%(process)d] [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S",
            "class": "logging.Formatter"
        }
    }
)


def setup(cfg):
    """Send ``fcgiclient`` log records to stderr at ``cfg.loglevel``.

    The library itself never installs handlers; applications that want its
    debug output without their own logging setup call this once.
    """
    config = copy.deepcopy(CONFIG_DEFAULTS)
    level = LOG_LEVELS.get(cfg.loglevel.lower(), logging.INFO)
    config["loggers"]["fcgiclient"]["level"] = logging.getLevelName(level)
    dictConfig(config)
    return logging.getLogger("fcgiclient")
