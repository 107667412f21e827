"""Shared utility functions for the CNAB Store project."""

import logging
from pathlib import Path

import colorlog


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a colorized format for the project."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger


def ensure_dir(path: str | Path) -> None:
    """Ensure a directory exists (like mkdir -p)."""
    Path(path).mkdir(parents=True, exist_ok=True)


def page_count(total_items: int, page_size: int) -> int:
    """Number of pages needed to show ``total_items`` items, 0 when there are none."""
    if total_items <= 0:
        return 0
    return -(-total_items // page_size)


def clamp_paging(page: int, page_size: int, default_size: int, max_size: int) -> tuple[int, int]:
    """Normalize paging parameters coming from query strings."""
    if page <= 0:
        page = 1
    if page_size <= 0:
        page_size = default_size
    elif page_size > max_size:
        page_size = max_size
    return page, page_size
