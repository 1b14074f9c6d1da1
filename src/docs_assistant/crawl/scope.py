"""
Allowed Documentation Scope

The crawlable and citable universe is a fixed, server-side pair of
documentation manuals. Nothing in a request can widen it: caller-supplied
source lists are validated against it and rejected as a whole when any entry
falls outside.

This module also holds the URL helpers the crawler uses to decide which links
are worth following.
"""

from __future__ import annotations

from typing import Final, Iterable, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlparse

from ..core.errors import ScopeViolationError


ALLOWED_BASES: Final[Tuple[str, ...]] = (
    "https://docs.navigaglobal.com/circulation-user-manual/",
    "https://docs.navigaglobal.com/circulation-setup-manual/",
)

NON_DOCUMENT_EXTENSIONS: Final[frozenset] = frozenset({
    # images
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".bmp",
    # styles / scripts / data
    ".css", ".js", ".mjs", ".map", ".json", ".xml",
    # documents / archives
    ".pdf", ".zip", ".gz", ".tgz", ".tar", ".rar", ".7z",
    # media
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".webm",
    # fonts
    ".woff", ".woff2", ".ttf", ".otf", ".eot",
})


def _origin_and_path(url: str) -> Tuple[str, str]:
    parsed = urlparse(url)
    origin = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"
    return origin, parsed.path or "/"


def is_under_base(url: str, base: str) -> bool:
    """
    True if `url` has the same origin as `base` and its path lies under the
    base path. The base path itself (with or without trailing slash) matches.
    """
    url_origin, url_path = _origin_and_path(url)
    base_origin, base_path = _origin_and_path(base)
    if url_origin != base_origin:
        return False

    prefix = base_path if base_path.endswith("/") else base_path + "/"
    return url_path == prefix.rstrip("/") or url_path.startswith(prefix)


def match_base(url: str, bases: Iterable[str] = ALLOWED_BASES) -> Optional[str]:
    """Return the allowed base that `url` belongs to, if any."""
    for base in bases:
        if is_under_base(url, base):
            return base
    return None


def is_document_link(href: str) -> bool:
    """
    Filter out fragment-only references and links to non-document assets.
    """
    href = href.strip()
    if not href or href.startswith("#"):
        return False

    path = urlparse(href).path.lower()
    dot = path.rfind(".")
    if dot != -1 and "/" not in path[dot:]:
        if path[dot:] in NON_DOCUMENT_EXTENSIONS:
            return False
    return True


def normalize_url(href: str, page_url: str) -> Optional[str]:
    """
    Resolve `href` against `page_url` and strip the fragment.

    Returns None for non-http(s) targets (mailto:, javascript:, ...).
    """
    absolute, _fragment = urldefrag(urljoin(page_url, href.strip()))
    if urlparse(absolute).scheme not in ("http", "https"):
        return None
    return absolute


def validate_requested_sources(
    requested: Optional[List[str]],
    bases: Iterable[str] = ALLOWED_BASES,
) -> None:
    """
    Fail closed if any caller-supplied source lies outside the allowed scope.

    Raises
    ------
    ScopeViolationError
        Listing every rejected entry. Nothing is filtered silently.
    """
    if not requested:
        return

    bases = tuple(bases)
    rejected = [src for src in requested if match_base(src, bases) is None]
    if rejected:
        raise ScopeViolationError(rejected)
