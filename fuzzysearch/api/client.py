"""FuzzySearch API client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import TypeAdapter, ValidationError

from fuzzysearch.api.models import (
    DEFAULT_API_ENDPOINT,
    ClientConfig,
    File,
    FileHashLookup,
    HashLookup,
    ImageLookup,
    LookupRequest,
    Matches,
    MatchType,
)
from fuzzysearch.api.ratelimit import NullThrottle, RequestThrottle
from fuzzysearch.core.exceptions import (
    AuthError,
    ConfigurationError,
    DecodeError,
    RateLimitError,
    ServiceError,
    TransportError,
)
from fuzzysearch.core.tracing import NULL_TRACER, RequestTracer

if TYPE_CHECKING:
    from fuzzysearch.config.settings import Settings
    from fuzzysearch.hashing.local import ImageHasher

logger = logging.getLogger(__name__)

_FILES = TypeAdapter(list[File])
_MATCHES = TypeAdapter(Matches)


class FuzzySearch:
    """Async client for the fuzzysearch.net API.

    Every lookup issues exactly one HTTP request. Failures surface as
    ``FuzzySearchError`` subclasses; an empty result list means no matches.
    The underlying ``httpx.AsyncClient`` is shared by concurrent calls.
    """

    API_ENDPOINT = DEFAULT_API_ENDPOINT

    def __init__(
        self,
        config: ClientConfig | str,
        *,
        client: httpx.AsyncClient | None = None,
        tracer: RequestTracer | None = None,
        throttle: RequestThrottle | None = None,
        hasher: ImageHasher | None = None,
    ):
        """Initialize the client.

        Args:
            config: Client configuration, or just an API key
            client: Optional HTTP client to use instead of an owned one
            tracer: Tracing strategy (defaults to no tracing)
            throttle: Client-side throttle (defaults to none)
            hasher: Local perceptual hasher, enables ``lookup_image_locally``
        """
        if isinstance(config, str):
            config = ClientConfig(api_key=config)
        self.config = config
        self.tracer = tracer or NULL_TRACER
        self.throttle = throttle or NullThrottle()
        self.hasher = hasher
        self._client = client
        self._owns_client = client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> FuzzySearch:
        """Build a client and its optional strategies from settings.

        Raises:
            ConfigurationError: If no API key is configured or the
                connection settings are invalid
        """
        if not settings.fuzzysearch_api_key:
            raise ConfigurationError("FUZZYSEARCH_API_KEY is not set")

        try:
            config = ClientConfig(
                api_key=settings.fuzzysearch_api_key,
                base_url=settings.fuzzysearch_base_url,
                timeout=settings.fuzzysearch_timeout,
                user_agent=settings.user_agent,
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid client settings: {e.errors(include_url=False)[0]['msg']}",
                details={"errors": e.errors(include_url=False)},
            ) from e

        tracer = None
        if settings.enable_tracing:
            from fuzzysearch.core.sentry import SentryTracer

            tracer = SentryTracer()

        hasher = None
        if settings.enable_local_hash:
            from fuzzysearch.hashing.local import get_hasher

            hasher = get_hasher()

        throttle = None
        if settings.fuzzysearch_max_concurrent or settings.fuzzysearch_rate_limit:
            throttle = RequestThrottle(
                max_concurrent=settings.fuzzysearch_max_concurrent,
                rate_limit=settings.fuzzysearch_rate_limit,
            )

        logger.debug(
            f"FuzzySearch client configured (tracing: {settings.enable_tracing}, "
            f"local hash: {settings.enable_local_hash})"
        )
        return cls(config, tracer=tracer, throttle=throttle, hasher=hasher)

    async def __aenter__(self) -> FuzzySearch:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "X-Api-Key": self.config.api_key.get_secret_value(),
            "User-Agent": self.config.user_agent,
            "Accept": "application/json",
        }
        return self.tracer.inject_headers(headers)

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Args:
            operation: Client operation name, used for tracing and logs
            method: HTTP method (GET, POST)
            path: API path (e.g., "/hashes")
            params: Optional query parameters
            files: Optional multipart file fields

        Returns:
            Parsed JSON payload
        """
        client = await self._get_client()
        url = f"{self.config.base_url}{path}"

        with self.tracer.span(operation, {"http.method": method, "path": path}):
            async with self.throttle:
                try:
                    response = await client.request(
                        method, url, params=params, files=files, headers=self._headers()
                    )
                except httpx.RequestError as e:
                    logger.error(f"FuzzySearch request failed: {e}")
                    raise TransportError(
                        f"FuzzySearch request failed: {e}",
                        details={"operation": operation, "path": path},
                    ) from e

            self._log_rate_limits(response)
            self._raise_for_status(response, operation)

            try:
                return response.json()
            except ValueError as e:
                raise DecodeError(
                    f"FuzzySearch returned invalid JSON for {operation}",
                    details={"operation": operation, "body": response.text[:500]},
                ) from e

    def _log_rate_limits(self, response: httpx.Response) -> None:
        limits = {k: v for k, v in response.headers.items() if k.lower().startswith("x-rate-limit")}
        if limits:
            logger.debug(f"FuzzySearch rate limits: {limits}")

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Map non-2xx responses to client errors."""
        status = response.status_code
        if response.is_success:
            return

        body = response.text
        details = {"operation": operation}

        if status in (401, 403):
            logger.warning(f"FuzzySearch rejected API key ({status})")
            raise AuthError(
                f"FuzzySearch rejected the API key (HTTP {status})",
                status_code=status,
                details=details,
            )

        if status == 429:
            retry_after = None
            header = response.headers.get("Retry-After")
            if header:
                try:
                    retry_after = float(header)
                except ValueError:
                    logger.debug(f"Unparseable Retry-After header: {header}")
            logger.warning(f"FuzzySearch rate limit hit (retry after: {retry_after})")
            raise RateLimitError(
                "FuzzySearch rate limit exceeded",
                body=body,
                retry_after=retry_after,
                details=details,
            )

        logger.error(f"FuzzySearch {operation} failed with HTTP {status}")
        raise ServiceError(
            f"FuzzySearch returned HTTP {status}",
            status_code=status,
            body=body,
            details=details,
        )

    def _decode(self, adapter: TypeAdapter, payload: Any, operation: str) -> Any:
        try:
            return adapter.validate_python(payload)
        except ValidationError as e:
            raise DecodeError(
                f"Unexpected response schema for {operation}: {e.error_count()} error(s)",
                details={"operation": operation, "errors": e.errors(include_url=False)},
            ) from e

    async def _file_lookup(self, operation: str, params: dict[str, str]) -> list[File]:
        payload = await self._request(operation, "GET", "/file", params=params)
        files = self._decode(_FILES, payload, operation)
        logger.info(f"{operation} found {len(files)} matches")
        return files

    async def lookup_by_hash(
        self, hashes: Sequence[int | str] | int | str, distance: int | None = None
    ) -> list[list[File]]:
        """Look up perceptual hashes.

        Args:
            hashes: Hashes as ints or hex strings
            distance: Max Hamming distance, or None for the server default

        Returns:
            One list of matches per input hash, in input order
        """
        request = HashLookup(hashes=hashes, distance=distance)
        return await self._lookup_hashes(request)

    async def _lookup_hashes(self, request: HashLookup) -> list[list[File]]:
        if not request.hashes:
            return []

        params: dict[str, Any] = {"hashes": ",".join(str(h) for h in request.hashes)}
        if request.distance is not None:
            params["distance"] = request.distance

        logger.info(
            f"Searching FuzzySearch for {len(request.hashes)} hashes "
            f"(distance: {request.distance})"
        )
        payload = await self._request("lookup_by_hash", "GET", "/hashes", params=params)
        files = self._decode(_FILES, payload, "lookup_by_hash")
        return self._group_by_searched_hash(request.hashes, files)

    def _group_by_searched_hash(self, hashes: list[int], files: list[File]) -> list[list[File]]:
        """Split a flat hash response into per-hash batches, keeping server order."""
        unique = set(hashes)
        single = hashes[0] if len(unique) == 1 else None
        batches: dict[int, list[File]] = {h: [] for h in unique}

        for item in files:
            key = item.searched_hash if item.searched_hash is not None else single
            if key not in batches:
                raise DecodeError(
                    "Match does not correspond to any submitted hash",
                    details={"searched_hash": item.searched_hash, "site_id": item.site_id},
                )
            batches[key].append(item)

        return [list(batches[h]) for h in hashes]

    async def image_search(
        self,
        data: bytes,
        match_type: MatchType = MatchType.CLOSE,
        filename: str = "image",
        content_type: str = "application/octet-stream",
    ) -> Matches:
        """Reverse image search by uploading image bytes.

        Requiring an exact match is faster but may leave out results.

        Returns:
            Matches including the hash the server computed for the upload
        """
        request = ImageLookup(
            data=data, filename=filename, content_type=content_type, match_type=match_type
        )
        return await self._image_search(request)

    async def _image_search(self, request: ImageLookup) -> Matches:
        logger.info(
            f"Uploading {len(request.data)} bytes to FuzzySearch "
            f"(type: {request.match_type.value})"
        )
        payload = await self._request(
            "image_search",
            "POST",
            "/image",
            params={"type": request.match_type.value},
            files={"image": (request.filename, request.data, request.content_type)},
        )
        matches = self._decode(_MATCHES, payload, "image_search")
        logger.info(f"Image search found {len(matches.matches)} matches")
        return matches

    async def lookup_by_file(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        match_type: MatchType = MatchType.CLOSE,
    ) -> list[File]:
        """Reverse image search by multipart upload, returning only the matches."""
        matches = await self.image_search(
            data, match_type=match_type, filename=filename, content_type=content_type
        )
        return matches.matches

    async def lookup_by_file_hash(self, sha256: str) -> list[File]:
        """Look up an exact file by its SHA-256 hex digest."""
        request = FileHashLookup(sha256=sha256)
        return await self._file_lookup("lookup_by_file_hash", {"sha256": request.sha256})

    async def lookup_url(self, url: str) -> list[File]:
        """Look up an image by its direct URL. URLs should be https."""
        return await self._file_lookup("lookup_url", {"url": url})

    async def lookup_filename(self, filename: str) -> list[File]:
        """Look up an image by its original filename on the source site."""
        return await self._file_lookup("lookup_filename", {"name": filename})

    async def lookup(self, request: LookupRequest) -> list[list[File]] | list[File]:
        """Dispatch a typed lookup request.

        Returns:
            Batches per hash for ``HashLookup``, a match list otherwise
        """
        if isinstance(request, HashLookup):
            return await self._lookup_hashes(request)
        if isinstance(request, ImageLookup):
            matches = await self._image_search(request)
            return matches.matches
        if isinstance(request, FileHashLookup):
            return await self._file_lookup("lookup_by_file_hash", {"sha256": request.sha256})
        raise TypeError(f"Unsupported lookup request: {type(request).__name__}")

    async def lookup_image_locally(self, data: bytes, distance: int | None = None) -> list[File]:
        """Hash an image locally, then look up the hash.

        Raises:
            ConfigurationError: If the client has no local hasher
        """
        if self.hasher is None:
            raise ConfigurationError("Local hashing is not enabled for this client")

        image_hash = await asyncio.to_thread(self.hasher.hash_image, data)
        logger.debug(f"Computed local hash {image_hash}")
        batches = await self.lookup_by_hash([image_hash], distance=distance)
        return batches[0]
