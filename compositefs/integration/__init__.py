"""CompositeFS integrations with third-party libraries."""

from .jinja_loader import CompositeLoader

__all__ = ["CompositeLoader"]
