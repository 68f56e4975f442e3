"""
Data models for SnapLink.

URL is the SQLAlchemy row; UrlRecord is the immutable value the services
work with. Store adapters translate between the two.
"""

from .url import URL
from .record import UrlRecord

__all__ = ["URL", "UrlRecord"]
