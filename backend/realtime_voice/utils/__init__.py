"""공통 유틸리티."""

from .logging_config import setup_logging

__all__ = ["setup_logging"]
