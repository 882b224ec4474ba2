"""Utility modules."""

from arr_auth.utils.logger import bind_context, clear_context, configure_logging, get_logger, unbind_context
from arr_auth.utils.tracing import get_tracer, init_tracing, shutdown_tracing

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "get_tracer",
    "init_tracing",
    "shutdown_tracing",
]
