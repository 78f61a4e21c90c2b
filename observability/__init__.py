"""Event logging and phase timing for provider calls."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
