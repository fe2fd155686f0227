"""Observability: logging."""

from funding_stages.observability.logging import (
    LOG_TAG_STAGE,
    LOG_TAG_STORE,
    get_logger,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LOG_TAG_STAGE",
    "LOG_TAG_STORE",
]
