"""Logging setup shared by the API and the scripts."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from infrastructure.config import ContainerConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
NOISY_LOGGERS = ("httpx", "urllib3", "azure.core.pipeline.policies.http_logging_policy")

_OWNED_ATTR = "_codebase_qa_handler"


def _owned(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def setup_logging(
    config: ContainerConfig | None = None,
    *,
    noisy_loggers: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """Route records to ``config.log_file`` and stderr at ``config.log_level``.

    Handlers installed by an earlier call are replaced, so the API and the
    scripts can reconfigure after loading a different config. Handlers that
    somebody else attached to the root logger (pytest, uvicorn) are kept.
    """

    cfg = config or ContainerConfig.from_env()
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if getattr(h, _OWNED_ATTR, False)]:
        root_logger.removeHandler(handler)
        handler.close()

    log_path = Path(cfg.log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in (logging.FileHandler(log_path, encoding="utf-8"), logging.StreamHandler()):
        handler.setFormatter(formatter)
        root_logger.addHandler(_owned(handler))
    root_logger.setLevel(cfg.log_level)

    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root_logger


__all__ = ["setup_logging"]
