from . import health, notifications

__all__ = ["health", "notifications"]
