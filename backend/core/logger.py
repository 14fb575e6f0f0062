# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Centralised logging configuration.

Levels, handlers and formats live in etc/logging.conf.  The config text
carries a ``%(log_file)s`` placeholder which is swapped for the absolute path
of log/app.log before it is handed to ``fileConfig``.

    from core.logger import logger
"""

import configparser
import logging
import logging.config
from pathlib import Path

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_LOG_DIR = _PROJECT_ROOT / "log"
_LOG_FILE = _LOG_DIR / "app.log"
_LOGGING_CONF = _PROJECT_ROOT / "etc" / "logging.conf"

_LOG_DIR.mkdir(exist_ok=True)

_raw = _LOGGING_CONF.read_text(encoding="utf-8").replace("%(log_file)s", str(_LOG_FILE))

# RawConfigParser: the format strings contain %(asctime)s etc. which the
# interpolating parser would choke on.
_parser = configparser.RawConfigParser()
_parser.read_string(_raw)

logging.config.fileConfig(_parser, disable_existing_loggers=False)

logger = logging.getLogger("campus_connect")
