from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_ATTR = "_codebase_explorer_handler"


def configure_logging(level: str = "INFO") -> logging.Logger:
	"""Attach a single stream handler to the root logger; safe to call repeatedly."""
	root = logging.getLogger()
	root.setLevel(getattr(logging, level.upper(), logging.INFO))
	if not any(getattr(h, _HANDLER_ATTR, False) for h in root.handlers):
		handler = logging.StreamHandler()
		handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
		setattr(handler, _HANDLER_ATTR, True)
		root.addHandler(handler)
	return root
