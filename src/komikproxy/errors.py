"""Error taxonomy shared by the fetch, extraction and virtualization layers.

Every error carries a short machine-readable ``kind``, the HTTP status a
transport should answer with, and a ``context`` mapping meant for logs only.
``str(error)`` and ``to_dict()`` are safe to show to clients: they never
contain an upstream URL.
"""


class ProxyError(Exception):
    """Base class for all classified proxy failures."""

    kind = "proxy_error"
    http_status = 500
    message = "Proxy failure"

    def __init__(self, message: str | None = None, **context):
        self.context = context
        super().__init__(message or self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": str(self)}


class FetchError(ProxyError):
    """Failure while talking to the upstream site."""

    kind = "fetch_error"
    http_status = 502
    message = "Upstream request failed"


class NetworkError(FetchError):
    kind = "network_error"
    message = "Upstream is unreachable"

    def __init__(self, cause: Exception, **context):
        self.cause = cause
        super().__init__(cause=type(cause).__name__, **context)


class FetchTimeout(FetchError):
    kind = "timeout"
    http_status = 504
    message = "Upstream did not answer in time"


class TooManyRedirects(FetchError):
    kind = "too_many_redirects"

    def __init__(self, max_redirects: int, **context):
        self.max_redirects = max_redirects
        super().__init__(
            f"Upstream redirected more than {max_redirects} times",
            max_redirects=max_redirects,
            **context,
        )


class UpstreamStatus(FetchError):
    kind = "upstream_status"

    def __init__(self, code: int, **context):
        self.code = code
        super().__init__(f"Upstream answered with status {code}", code=code, **context)
        if code == 404:
            self.http_status = 404


class ExtractionError(ProxyError):
    kind = "extraction_error"
    http_status = 502
    message = "Upstream page could not be read"


class ParseError(ExtractionError):
    kind = "parse_error"
    message = "Upstream page is not parseable markup"


class NoMatchError(ExtractionError):
    """No extraction strategy recognised the page layout."""

    kind = "no_match"
    message = "Upstream page layout was not recognised"

    def __init__(self, profile: str, diagnostics: dict[str, int], **context):
        self.profile = profile
        self.diagnostics = diagnostics
        super().__init__(profile=profile, diagnostics=diagnostics, **context)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["diagnostics"] = dict(self.diagnostics)
        return data


class ResourceNotFound(ProxyError):
    kind = "resource_not_found"
    http_status = 404
    message = "Resource is unknown"


class InvalidReference(ProxyError):
    """A caller-supplied identifier cannot be turned into a site URL."""

    kind = "invalid_reference"
    http_status = 400
    message = "Invalid identifier"
