"""URL completion, canonicalisation and identifier validation."""

import re
from urllib.parse import parse_qsl, unquote, urlencode, urljoin, urlparse, urlunparse

from .errors import InvalidReference

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_SLUG_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_EXTENSION_RE = re.compile(r"^[a-z0-9]{1,5}$")

DEFAULT_EXTENSION = "jpg"


def absolute_url(url: str, base_url: str) -> str:
    """Complete a reference found in markup into an absolute URL.

    Rules, in order:

    - protocol-relative ``//host/path`` becomes ``https://host/path``
    - absolute ``http(s)://`` URLs are returned unchanged
    - root-relative ``/path`` is joined to the origin of ``base_url``
    - anything else resolves against ``base_url`` like a browser would

    Raises:
        InvalidReference: the completed URL does not parse, e.g. an
            unterminated ``[`` in the host.
    """
    url = url.strip()
    try:
        completed = _complete(url, base_url)
        urlparse(completed)
    except ValueError as e:
        raise InvalidReference("Malformed URL", value=url) from e
    return completed


def _complete(url: str, base_url: str) -> str:
    if url.startswith("//"):
        return "https:" + url
    if _SCHEME_RE.match(url):
        return url
    if url.startswith("/"):
        parsed = urlparse(base_url)
        return f"{parsed.scheme}://{parsed.netloc}{url}"
    return urljoin(base_url, url)


def canonical_url(url: str) -> str:
    """Normalize URL for deduplication (remove fragment, sort query params)."""
    parsed = urlparse(url)

    query_params = parse_qsl(parsed.query)
    sorted_query = urlencode(sorted(query_params))

    # Normalize path (remove trailing slash except for root)
    path = parsed.path.rstrip("/") or "/"

    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        path,
        parsed.params,
        sorted_query,
        "",
    ))


def is_http_url(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


def file_extension(url: str, default: str = DEFAULT_EXTENSION) -> str:
    """Lower-cased last dot-segment of the URL path, or ``default``."""
    try:
        path = urlparse(url).path
    except ValueError:
        return default
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return default
    extension = name.rsplit(".", 1)[-1].lower()
    return extension if _EXTENSION_RE.match(extension) else default


def validate_slug(slug: str) -> str:
    """Return ``slug`` if it is safe to place in a single URL path segment."""
    if not slug or slug in (".", "..") or not _SLUG_RE.match(slug):
        raise InvalidReference("Invalid identifier", value=slug)
    return slug


def slug_from_url(url: str) -> str | None:
    """Entity slug of a ``/manga/<slug>/`` URL, else its last path segment."""
    segments = [segment for segment in urlparse(url).path.split("/") if segment]
    if not segments:
        return None
    if "manga" in segments:
        index = segments.index("manga")
        if index + 1 < len(segments):
            return segments[index + 1]
    return segments[-1]


def _host(netloc: str) -> str:
    host = netloc.lower()
    return host[4:] if host.startswith("www.") else host


def chapter_path(url: str) -> str:
    """Site path of a chapter URL without surrounding slashes."""
    return urlparse(url).path.strip("/")


def normalize_chapter_ref(chapter_ref: str, base_url: str) -> str:
    """Turn a caller-supplied chapter reference into a site path.

    Surrounding slashes are stripped, percent-encoding is decoded, absolute
    URLs on the site host are reduced to their path and repeated slashes are
    collapsed. The result has no leading or trailing slash.
    """
    ref = unquote(chapter_ref.strip().strip("/"))

    if ref.startswith("//") or _SCHEME_RE.match(ref):
        parsed = urlparse(absolute_url(ref, base_url))
        if _host(parsed.netloc) != _host(urlparse(base_url).netloc):
            raise InvalidReference("Chapter reference points outside the site", value=chapter_ref)
        ref = parsed.path

    path = re.sub(r"/{2,}", "/", ref).strip("/")
    if not path:
        raise InvalidReference("Empty chapter reference", value=chapter_ref)
    for segment in path.split("/"):
        validate_slug(segment)
    return path
