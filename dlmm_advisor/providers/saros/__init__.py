from .adapter import SarosApiProvider

__all__ = ["SarosApiProvider"]
