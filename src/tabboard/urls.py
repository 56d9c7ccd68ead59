import re
from urllib.parse import urlparse, urlunparse

SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*://|(javascript|mailto|about|data|chrome|edge):)", re.I)
IMPORTABLE_SCHEMES = ("http", "https", "file", "ftp")


def normalize_url(u: str) -> str:
    if not u: return ""
    u = u.strip()
    if not u: return ""
    if not SCHEME_RE.match(u):
        u = "https://" + u
    return u


def canonical_url(u: str) -> str:
    """Normalize URL for dedupe comparisons."""
    u = normalize_url(u)
    try:
        pr = urlparse(u)
        scheme = pr.scheme.lower() or "https"
        netloc = pr.netloc.lower()
        # strip default ports
        if netloc.endswith(":80") and scheme=="http": netloc = netloc[:-3]
        if netloc.endswith(":443") and scheme=="https": netloc = netloc[:-4]
        path = (pr.path or "/")
        if len(path) > 1:
            path = path.rstrip("/")
        # keep query; drop fragment
        return urlunparse((scheme, netloc, path, "", pr.query, ""))
    except ValueError:
        return u.strip().lower()


def host_of(u: str) -> str:
    try:
        host = urlparse(normalize_url(u)).hostname or ""
    except ValueError:
        return ""
    return host


def guess_title_from_url(u: str) -> str:
    return host_of(u) or u


def is_importable(u: str) -> bool:
    try:
        return urlparse(u or "").scheme.lower() in IMPORTABLE_SCHEMES
    except ValueError:
        return False
