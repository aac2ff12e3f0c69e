"""Canonical Pydantic models shared across all fetchcache modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`OutputConfig` and
    :class:`GlobalConfig`.

**Runtime models** -- produced and consumed by the caching layer:
    :class:`Classification`, :class:`Destination`, :class:`RequestMode`,
    :class:`RequestDescriptor`, :class:`CachedResponse`,
    :class:`GenerationSet` and :class:`LifecycleState`.

All models use Pydantic v2. Runtime models are frozen: a request descriptor
or a stored snapshot never changes once built.
"""

from __future__ import annotations

import enum
from typing import Any, Optional
from urllib.parse import urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Configuration ---


class CacheConfig(BaseModel):
    """Generation naming and routing settings stored in :class:`GlobalConfig`.

    ``namespace`` and ``version`` together name the two cache generations
    (see :meth:`GenerationSet.from_config`). Bumping ``version`` on deploy
    orphans every generation of the previous version, which the next
    activation cycle purges.
    """

    enabled: bool = Field(default=True, description="Intercept requests at all")
    namespace: str = Field(default="fetchcache", description="Generation name prefix")
    version: str = Field(default="v1", description="Generation version tag")
    api_prefix: str = Field(
        default="/api/", description="Path prefix routed to stale-while-revalidate"
    )
    root_path: str = Field(
        default="/", description="Root document served when a navigation is offline"
    )


class RequestConfig(BaseModel):
    """Settings for the origin HTTP client."""

    timeout: Optional[float] = Field(
        default=None, description="Request timeout in seconds (None waits forever)"
    )
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow redirects")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )

    @field_validator("format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("auto", "json", "plain", "rich"):
            raise ValueError(f"unknown output format: {value}")
        return value


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/fetchcache/config.json``.

    Loaded and saved by :func:`~fetchcache.config.load_global_config` and
    :func:`~fetchcache.config.save_global_config`. See
    :func:`~fetchcache.config.resolve_config` for the precedence chain.
    """

    origin: Optional[str] = Field(
        default=None, description="Base URL that relative request URLs resolve against"
    )
    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Runtime ---


class Classification(str, enum.Enum):
    """The caching class a request falls into.

    Computed per request by :func:`~fetchcache.router.classify` and never
    persisted.
    """

    API = "api"
    ASSET = "asset"
    NAVIGATION = "navigation"
    UNHANDLED = "unhandled"


class Destination(str, enum.Enum):
    """Declared resource type of a request (what the response will be used as)."""

    EMPTY = ""
    DOCUMENT = "document"
    IMAGE = "image"
    SCRIPT = "script"
    STYLE = "style"
    FONT = "font"
    AUDIO = "audio"
    VIDEO = "video"
    MANIFEST = "manifest"
    WORKER = "worker"


class RequestMode(str, enum.Enum):
    """Request mode; ``NAVIGATE`` marks a top-level document load."""

    NAVIGATE = "navigate"
    CORS = "cors"
    NO_CORS = "no-cors"
    SAME_ORIGIN = "same-origin"


class RequestDescriptor(BaseModel):
    """An outbound request as seen by the caching layer.

    Header names are lower-cased on construction so lookups such as
    ``request.header("Accept")`` are case-insensitive.

    Example::

        RequestDescriptor(
            url="https://app.example.com/static/logo.png",
            destination=Destination.IMAGE,
        )
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    url: str
    destination: Destination = Destination.EMPTY
    headers: dict[str, str] = Field(default_factory=dict)
    mode: RequestMode = RequestMode.CORS

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    @field_validator("headers")
    @classmethod
    def _lower_header_names(cls, value: dict[str, str]) -> dict[str, str]:
        return {k.lower(): v for k, v in value.items()}

    @property
    def path(self) -> str:
        """The URL path component (``/`` when the URL has none)."""
        return urlsplit(self.url).path or "/"

    @property
    def is_navigation(self) -> bool:
        """Whether this is a top-level navigation."""
        return self.mode == RequestMode.NAVIGATE

    def header(self, name: str, default: str = "") -> str:
        """Return header *name* (case-insensitive), or *default*."""
        return self.headers.get(name.lower(), default)

    def origin_url(self, path: str) -> str:
        """Resolve *path* against this request's origin."""
        return urljoin(self.url, path)


class CachedResponse(BaseModel):
    """Immutable snapshot of a response captured at store time.

    The body is kept as raw bytes and the headers as an ordered list of
    pairs, so that a cache hit replays exactly what the origin sent,
    repeated headers such as ``set-cookie`` included.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    status_code: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: bytes = b""

    @field_validator("headers", mode="before")
    @classmethod
    def _header_pairs(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return list(value.items())
        return value


class GenerationSet(BaseModel):
    """The generation names owned by the current version.

    Passed explicitly to the strategies and the lifecycle manager so that
    each can be tested with injected names.
    """

    model_config = ConfigDict(frozen=True)

    api: str
    assets: str

    @classmethod
    def from_config(cls, config: CacheConfig) -> GenerationSet:
        """Derive ``<namespace>-api-<version>`` and ``<namespace>-assets-<version>``."""
        return cls(
            api=f"{config.namespace}-api-{config.version}",
            assets=f"{config.namespace}-assets-{config.version}",
        )

    @property
    def names(self) -> frozenset[str]:
        """Both generation names as a set."""
        return frozenset((self.api, self.assets))


class LifecycleState(str, enum.Enum):
    """States of :class:`~fetchcache.lifecycle.LifecycleManager`."""

    PARSED = "parsed"
    INSTALLING = "installing"
    ACTIVATING = "activating"
    ACTIVE = "active"
