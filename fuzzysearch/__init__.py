"""Async API client for fuzzysearch.net reverse image search."""

from fuzzysearch.api.client import FuzzySearch
from fuzzysearch.api.models import (
    ClientConfig,
    E621File,
    File,
    FileHashLookup,
    FurAffinityFile,
    HashLookup,
    ImageLookup,
    Matches,
    MatchType,
    Rating,
    Site,
    parse_hash,
)
from fuzzysearch.api.ratelimit import RequestThrottle
from fuzzysearch.core.exceptions import (
    AuthError,
    ConfigurationError,
    DecodeError,
    FuzzySearchError,
    RateLimitError,
    ServiceError,
    TransportError,
)
from fuzzysearch.core.tracing import RequestTracer

__version__ = "0.2.0"

__all__ = [
    "AuthError",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "E621File",
    "File",
    "FileHashLookup",
    "FurAffinityFile",
    "FuzzySearch",
    "FuzzySearchError",
    "HashLookup",
    "ImageLookup",
    "MatchType",
    "Matches",
    "RateLimitError",
    "Rating",
    "RequestThrottle",
    "RequestTracer",
    "ServiceError",
    "Site",
    "TransportError",
    "parse_hash",
]
