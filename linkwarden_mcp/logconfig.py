"""Log sink setup. Stdout carries the protocol, so logs go to a file or stderr."""
import logging
import sys
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class LogConfig:
    level: str = "INFO"
    path: Optional[str] = None


def setup_logging(config: LogConfig) -> logging.Handler:
    if config.path:
        handler: logging.Handler = logging.FileHandler(config.path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )
    return handler
