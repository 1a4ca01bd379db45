"""Services layer package for request handling and upstream access."""

from .catalog import Catalog
from .generation_service import GenerationService, GenerationStrategy
from .request_validator import RequestValidator
from .upstream_client import UpstreamStream, UpstreamStreamClient

__all__ = [
    "Catalog",
    "GenerationService",
    "GenerationStrategy",
    "RequestValidator",
    "UpstreamStream",
    "UpstreamStreamClient",
]
