from elsquiz.content.store import ContentStore

__all__ = ["ContentStore"]
