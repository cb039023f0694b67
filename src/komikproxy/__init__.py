"""Content extraction and URL virtualization proxy for a comic site."""

from .service import OperationResult, ProxyService, ResourcePayload
from .store import MappingStore

__version__ = "0.1.0"

__all__ = ["MappingStore", "OperationResult", "ProxyService", "ResourcePayload", "__version__"]
