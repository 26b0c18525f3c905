"""Application-level decorators for cross-cutting concerns."""

from application.decorators.retry import retry_until_timeout

__all__ = ["retry_until_timeout"]
