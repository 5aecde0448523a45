# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
The ``summit`` logger, configured from etc/logging.conf.

The config file names its rotating log file as ``%(log_file)s``; that token
is swapped for <project>/log/app.log before the text reaches fileConfig.

    from core.logger import logger
"""

import configparser as _cp
import logging
import logging.config
from pathlib import Path

_PROJECT_ROOT  = Path(__file__).resolve().parent.parent.parent
_LOG_DIR       = _PROJECT_ROOT / "log"
_LOG_FILE      = _LOG_DIR / "app.log"
_LOGGING_CONF  = _PROJECT_ROOT / "etc" / "logging.conf"

# RotatingFileHandler opens the file at config time
_LOG_DIR.mkdir(exist_ok=True)

_raw = _LOGGING_CONF.read_text(encoding="utf-8")
_raw = _raw.replace("%(log_file)s", str(_LOG_FILE))

# Raw parser: the formatter's %(asctime)s / %(message)s must survive unexpanded
_parser = _cp.RawConfigParser()
_parser.read_string(_raw)

logging.config.fileConfig(_parser, disable_existing_loggers=False)

logger = logging.getLogger("summit")
