"""Request classification.

:func:`classify` maps a :class:`~fetchcache.models.RequestDescriptor` to
the :class:`~fetchcache.models.Classification` that decides which strategy
handles it.  The checks run in a fixed order and the first match wins:

1. Anything other than ``GET`` is ``unhandled``.
2. A path under the API prefix is ``api``.
3. An image, script, style or font destination is an ``asset``.
4. A top-level navigation, or an ``Accept`` header asking for HTML, is a
   ``navigation``.
5. Everything else is ``unhandled``.

So ``/api/avatar.png`` requested as an image is still ``api``.
"""

from __future__ import annotations

from fetchcache.models import Classification, Destination, RequestDescriptor

ASSET_DESTINATIONS = frozenset(
    {Destination.IMAGE, Destination.SCRIPT, Destination.STYLE, Destination.FONT}
)

_HTML_MEDIA_TYPE = "text/html"


def classify(request: RequestDescriptor, api_prefix: str = "/api/") -> Classification:
    """Classify *request*.

    Args:
        request: The outbound request.
        api_prefix: Path prefix that marks API calls.

    Returns:
        The request's :class:`~fetchcache.models.Classification`.
    """
    if request.method != "GET":
        return Classification.UNHANDLED
    if request.path.startswith(api_prefix):
        return Classification.API
    if request.destination in ASSET_DESTINATIONS:
        return Classification.ASSET
    if request.is_navigation or _HTML_MEDIA_TYPE in request.header("accept"):
        return Classification.NAVIGATION
    return Classification.UNHANDLED


class PolicyRouter:
    """:func:`classify` bound to a configured API prefix."""

    def __init__(self, api_prefix: str = "/api/") -> None:
        self.api_prefix = api_prefix

    def classify(self, request: RequestDescriptor) -> Classification:
        return classify(request, self.api_prefix)
