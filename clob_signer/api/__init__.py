"""HTTP clients for the CLOB API."""

from .base import BaseAPIClient
from .clob import CLOBAPI

__all__ = ["BaseAPIClient", "CLOBAPI"]
