"""Utility modules for jinjawire."""

from jinjawire.utils.logging import LogMode, configure_from_cli, get_logger, setup_logging

__all__ = ["LogMode", "configure_from_cli", "get_logger", "setup_logging"]
