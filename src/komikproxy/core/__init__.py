"""Core proxy components."""

from .fetcher import HttpFetcher
from .protocols import Fetcher, FetchResult

__all__ = ["Fetcher", "FetchResult", "HttpFetcher"]
