from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from machine_notify.core.config.yaml_config import LoggingConfig

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"


def configure_logging(cfg: LoggingConfig) -> None:
    """
    Configure root logging from the ``logging`` config section.

    Installs a stdout handler (if enabled) and a rotating file handler (if a
    file is set). Existing root handlers are replaced.
    """
    level = getattr(logging, cfg.level.upper().strip(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)

    if cfg.console:
        console_handler = logging.StreamHandler(stream=sys.stdout)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if cfg.file:
        path = Path(cfg.file)
        if not path.is_absolute():
            path = Path.cwd() / path
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=path,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    logging.captureWarnings(True)
    log.info("Logging configured level=%s console=%s file=%s", cfg.level, cfg.console, cfg.file)
