"""Pydantic models for FuzzySearch API requests and responses."""

import re
from collections.abc import Sequence
from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    SecretStr,
    Tag,
    field_validator,
    model_validator,
)

DEFAULT_API_ENDPOINT = "https://api.fuzzysearch.net"

_HEX_HASH_RE = re.compile(r"^(?:0x)?([0-9a-f]{1,16})$", re.IGNORECASE)
_SHA256_RE = re.compile(r"^[0-9a-f]{64}$", re.IGNORECASE)

_I64_MIN = -(1 << 63)
_U64_MAX = (1 << 64) - 1


def parse_hash(value: int | str) -> int:
    """Normalize a perceptual hash to the signed 64-bit form the API uses.

    Accepts signed or unsigned 64-bit integers and hex strings with or
    without a ``0x`` prefix. Strings are always read as hex, so callers
    holding decimal text should convert it with ``int()`` first.

    Raises:
        ValueError: If the value is not a 64-bit hash
    """
    if isinstance(value, bool):
        raise ValueError("hash must be an int or hex string, not bool")
    if isinstance(value, str):
        match = _HEX_HASH_RE.match(value.strip())
        if not match:
            raise ValueError(f"invalid hex hash: {value!r}")
        value = int(match.group(1), 16)
    if not isinstance(value, int):
        raise ValueError(f"hash must be an int or hex string, got {type(value).__name__}")
    if value < _I64_MIN or value > _U64_MAX:
        raise ValueError(f"hash out of 64-bit range: {value}")
    if value >= 1 << 63:
        value -= 1 << 64
    return value


class MatchType(StrEnum):
    """How the image endpoint matches an upload."""

    # Start with exact items, expand if nothing is found
    CLOSE = "close"
    EXACT = "exact"
    # Always search the expanded set
    FORCE = "force"


class Rating(StrEnum):
    GENERAL = "general"
    MATURE = "mature"
    ADULT = "adult"


class Site(StrEnum):
    FURAFFINITY = "FurAffinity"
    E621 = "e621"
    TWITTER = "Twitter"
    WEASYL = "Weasyl"


SITE_NAMES = {
    Site.FURAFFINITY: "FurAffinity",
    Site.E621: "e621",
    Site.TWITTER: "Twitter",
    Site.WEASYL: "Weasyl",
}


class ClientConfig(BaseModel):
    """Immutable connection settings for a FuzzySearch client."""

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr
    base_url: str = DEFAULT_API_ENDPOINT
    timeout: float | None = None
    user_agent: str = "fuzzysearch-python/0.2.0"

    @field_validator("api_key")
    @classmethod
    def _api_key_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("api_key must not be empty")
        return value

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        """Require an absolute http(s) URL and drop any trailing slash."""
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid base_url {value!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"base_url must be an absolute http(s) URL, got {value!r}")
        return value.rstrip("/")


class FurAffinityFile(BaseModel):
    """FurAffinity-specific file details."""

    model_config = ConfigDict(frozen=True)

    # ID from the image URL, not the submission ID
    file_id: int


class E621File(BaseModel):
    """e621-specific file details."""

    model_config = ConfigDict(frozen=True)

    sources: list[str] | None = None


_SITE_INFO_MODELS: dict[str, type[BaseModel]] = {
    Site.FURAFFINITY: FurAffinityFile,
    Site.E621: E621File,
}


def _site_info_tag(value: Any) -> str:
    # Model instances come from the site-aware validator on File; anything
    # else is details for a site without a model and stays untouched.
    if isinstance(value, FurAffinityFile):
        return "furaffinity"
    if isinstance(value, E621File):
        return "e621"
    return "raw"


SiteInfo = Annotated[
    Annotated[FurAffinityFile, Tag("furaffinity")]
    | Annotated[E621File, Tag("e621")]
    | Annotated[dict[str, Any], Tag("raw")],
    Discriminator(_site_info_tag),
]


class File(BaseModel):
    """A single match returned by the API."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: int | None = None
    site_id: int
    url: str
    filename: str
    artists: list[str] | None = None
    rating: Rating | None = None
    posted_at: datetime | None = None
    sha256: str | None = None
    hash: int | None = None
    distance: int | None = None
    site: str | None = None
    site_info: SiteInfo | None = None
    searched_hash: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _decode_site_info(cls, data: Any) -> Any:
        """Pick the site_info model from the ``site`` tag."""
        if not isinstance(data, dict):
            return data
        info = data.get("site_info")
        if not isinstance(info, dict):
            return data
        model = _SITE_INFO_MODELS.get(data.get("site"))
        if model is None:
            # Unknown site: keep the raw details
            return data
        return {**data, "site_info": model.model_validate(info)}

    @property
    def site_name(self) -> str | None:
        """Human readable name of the site."""
        if self.site is None:
            return None
        return SITE_NAMES.get(self.site, self.site)

    @property
    def source_url(self) -> str | None:
        """Link to the submission page on the source site."""
        if self.site == Site.TWITTER:
            if not self.artists:
                return None
            return f"https://twitter.com/{self.artists[0]}/status/{self.site_id}"
        if self.site == Site.FURAFFINITY:
            return f"https://www.furaffinity.net/view/{self.site_id}/"
        if self.site == Site.E621:
            return f"https://e621.net/posts/{self.site_id}"
        if self.site == Site.WEASYL:
            return f"https://www.weasyl.com/view/{self.site_id}/"
        return None


class Matches(BaseModel):
    """Image search response: the hash of the upload and its matches."""

    model_config = ConfigDict(frozen=True)

    hash: int
    matches: list[File] = []


class HashLookup(BaseModel):
    """Look up one or more perceptual hashes."""

    model_config = ConfigDict(frozen=True)

    hashes: list[int]
    distance: int | None = Field(default=None, ge=0)

    @field_validator("hashes", mode="before")
    @classmethod
    def _normalize_hashes(cls, value: Any) -> list[int]:
        if isinstance(value, (int, str)):
            value = [value]
        if not isinstance(value, Sequence):
            raise ValueError(f"hashes must be a hash or a list of hashes, got {type(value).__name__}")
        return [parse_hash(v) for v in value]


class ImageLookup(BaseModel):
    """Upload image bytes for a reverse image search."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    filename: str = "image"
    content_type: str = "application/octet-stream"
    match_type: MatchType = MatchType.CLOSE

    @field_validator("data")
    @classmethod
    def _data_not_empty(cls, value: bytes) -> bytes:
        if not value:
            raise ValueError("image data must not be empty")
        return value


class FileHashLookup(BaseModel):
    """Look up an exact file by its SHA-256 digest."""

    model_config = ConfigDict(frozen=True)

    sha256: str

    @field_validator("sha256")
    @classmethod
    def _validate_sha256(cls, value: str) -> str:
        value = value.strip()
        if not _SHA256_RE.match(value):
            raise ValueError("sha256 must be 64 hex characters")
        return value.lower()


LookupRequest = HashLookup | ImageLookup | FileHashLookup
