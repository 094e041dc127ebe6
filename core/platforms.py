"""
Platform Extraction
-------------------
Maps a cited source URL to a canonical platform identifier.

Known domains and path patterns resolve through PLATFORM_MAP. Anything else
falls back to the first label of the hostname, so new platforms show up in the
data as soon as the answer engine starts citing them.

Pure module: no I/O.
"""

from typing import Dict, Optional
from urllib.parse import urlparse

# Checked in insertion order against both the hostname and the full URL.
PLATFORM_MAP: Dict[str, str] = {
    "yelp.com": "yelp",
    "tripadvisor.com": "tripadvisor",
    "google.com/maps": "google",
    "maps.google.com": "google",
    "facebook.com": "facebook",
    "instagram.com": "instagram",
    "reddit.com": "reddit",
    "nextdoor.com": "nextdoor",
    "foursquare.com": "foursquare",
    "opentable.com": "opentable",
    "resy.com": "resy",
    "thrillist.com": "thrillist",
    "timeout.com": "timeout",
    "eater.com": "eater",
    "zagat.com": "zagat",
}


def _parse_hostname(url: str) -> Optional[str]:
    candidate = url
    if "://" not in candidate:
        # Bare host ("yelp.com/biz/x"); anything with spaces is not a URL.
        if " " in candidate or "." not in candidate:
            return None
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
    except ValueError:
        return None

    if not parsed.scheme or not hostname:
        return None
    return hostname.lower()


def extract_platform(
    url: Optional[str],
    platform_map: Optional[Dict[str, str]] = None,
) -> Optional[str]:
    """
    Return the platform identifier for `url`, or None for empty/malformed input.

    >>> extract_platform("https://www.yelp.com/biz/some-lounge")
    'yelp'
    >>> extract_platform("https://obscuresite.net/page")
    'obscuresite'
    """
    if not url or not url.strip():
        return None

    url = url.strip()
    hostname = _parse_hostname(url)
    if not hostname:
        return None

    if hostname.startswith("www."):
        hostname = hostname[len("www."):]

    patterns = PLATFORM_MAP if platform_map is None else platform_map
    full_url = url.lower()
    for pattern, platform in patterns.items():
        if pattern in hostname or pattern in full_url:
            return platform

    first_label = hostname.split(".")[0]
    return first_label or None
