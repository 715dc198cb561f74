from elsquiz.api import relay

__all__ = ["relay"]
