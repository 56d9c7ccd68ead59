"""Favicon lookup as a restartable sequence of candidate icon URLs.

A tile asks for ``icon_url(url, attempt)`` and bumps ``attempt`` every time
the image fails to load. Once the candidates run out it gets ``None`` and
shows the generic globe icon instead.
"""

from .urls import host_of

MAX_ATTEMPTS = 4


def favicon_candidates(url):
    host = host_of(url)
    if not host:
        return
    yield f"https://www.google.com/s2/favicons?domain={host}&sz=128"
    yield f"https://icons.duckduckgo.com/ip3/{host}.ico"
    yield f"https://{host}/favicon.ico"
    yield f"https://www.google.com/s2/favicons?domain={host}&sz=64"


def icon_url(url, attempt=0):
    if attempt < 0 or attempt >= MAX_ATTEMPTS:
        return None
    for i, candidate in enumerate(favicon_candidates(url)):
        if i == attempt:
            return candidate
    return None
