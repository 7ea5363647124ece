"""
Environment Detector
====================
Derives a browser label and a device label from a free-text user-agent.

Detection Strategy:
    1. ORDERED RULE TABLES — (predicate, label) pairs, first match wins
    2. Version numbers captured by regex after the family is decided
    3. Unrecognised agents fall back to "Unknown" (browser) / "Desktop" (device)

Order matters: every Chromium browser also advertises "Safari", and Edge also
advertises "Chrome", so the exclusions live in the predicates themselves.
Detection is best effort and purely informational.
"""
import re
from typing import Callable, Optional

from bugdesk.core.constants import UNKNOWN, DEFAULT_DEVICE


# ---------------------------------------------------------------------------
# 1. Browser rules
# ---------------------------------------------------------------------------
# Each entry: (predicate on the raw agent, family label, version regex)
_BROWSER_RULES: list[tuple[Callable[[str], bool], str, re.Pattern]] = [
    (lambda ua: "Chrome" in ua and "Edg" not in ua,    "Chrome",  re.compile(r"Chrome/(\d+)")),
    (lambda ua: "Firefox" in ua,                        "Firefox", re.compile(r"Firefox/(\d+)")),
    (lambda ua: "Safari" in ua and "Chrome" not in ua,  "Safari",  re.compile(r"Version/(\d+)")),
    (lambda ua: "Edg" in ua,                            "Edge",    re.compile(r"Edg/(\d+)")),
]


# ---------------------------------------------------------------------------
# 2. Device rules
# ---------------------------------------------------------------------------
# Mobile markers first, then desktop operating systems
_DEVICE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"Android",   re.I), "Android Device"),
    (re.compile(r"iPhone",    re.I), "iPhone"),
    (re.compile(r"iPad",      re.I), "iPad"),
    (re.compile(r"Windows",   re.I), "Windows PC"),
    (re.compile(r"Macintosh", re.I), "Mac"),
    (re.compile(r"Linux",     re.I), "Linux PC"),
]


def detect_browser(user_agent: str) -> str:
    """
    Return "<Family> <major version>" for the agent, or "Unknown".

    Examples
    --------
    >>> detect_browser("Mozilla/5.0 ... Chrome/120.0.0.0 Safari/537.36")
    'Chrome 120'
    """
    ua = user_agent or ""
    for predicate, family, version_re in _BROWSER_RULES:
        if predicate(ua):
            match = version_re.search(ua)
            return f"{family} {match.group(1) if match else UNKNOWN}"
    return UNKNOWN


def detect_device(
    user_agent: str,
    screen_width: Optional[int] = None,
    screen_height: Optional[int] = None,
) -> str:
    """Return the device class, with " (WxH)" appended when the screen is known."""
    ua = user_agent or ""
    device = DEFAULT_DEVICE
    for pattern, label in _DEVICE_RULES:
        if pattern.search(ua):
            device = label
            break

    if screen_width and screen_height:
        device += f" ({screen_width}x{screen_height})"
    return device
