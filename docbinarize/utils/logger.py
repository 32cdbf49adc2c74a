"""Logging helper."""
import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def get_logger(name: str = "docbinarize", level: Union[int, str] = logging.INFO) -> logging.Logger:
	"""
	Return a logger with a single stream handler attached.
	Args:
		name: Logger name; the package logger configures every module logger
		level: Level name or number
	"""
	logger = logging.getLogger(name)
	if not logger.handlers:
		ch = logging.StreamHandler()
		ch.setFormatter(logging.Formatter(LOG_FORMAT))
		logger.addHandler(ch)
	logger.setLevel(level.upper() if isinstance(level, str) else level)
	return logger
