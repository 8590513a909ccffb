"""
Structured logging package for the relay server.

All imports should use explicit paths like
'from relay.structured_logging.enhanced_logging_config import get_logger'.

The package is named 'structured_logging' rather than 'logging' to avoid
shadowing the standard library module.
"""

__all__: list[str] = []
