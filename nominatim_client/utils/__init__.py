from .logging import StructuredJSONFormatter, get_logger, setup_logging

__all__ = ["StructuredJSONFormatter", "get_logger", "setup_logging"]
