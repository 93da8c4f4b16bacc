"""
Utilities Module

Provides shared utilities across the application:
- Logging configuration
- Custom exceptions
- Retry, backoff and circuit breaking
- Rate limiting
- Completion output sanitization
"""

from .logging import get_logger, setup_logging, log_api_call, log_transition
