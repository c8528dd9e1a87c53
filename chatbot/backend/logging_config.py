from __future__ import annotations

import logging
import sys


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_LOGGING_CONFIGURED = False


def configure_logging(level: str | int = "INFO") -> None:
	"""Attach a single stream handler to the ``chatbot`` logger tree.

	Safe to call more than once; later calls only adjust the level.
	"""
	global _LOGGING_CONFIGURED

	logger = logging.getLogger("chatbot")
	logger.setLevel(level)
	if _LOGGING_CONFIGURED:
		return

	handler = logging.StreamHandler(sys.stderr)
	handler.setFormatter(logging.Formatter(LOG_FORMAT))
	logger.addHandler(handler)
	logger.propagate = False
	_LOGGING_CONFIGURED = True
