import re
from typing import Dict, Optional

UNKNOWN = "Unknown"

# First match wins: Android UAs also say "Linux", iOS UAs also say "Mac OS X"
_OS_PATTERNS = [
    ("Android", re.compile(r"Android", re.I)),
    ("iOS", re.compile(r"iPhone|iPad|iPod", re.I)),
    ("Windows", re.compile(r"Windows", re.I)),
    ("MacOS", re.compile(r"Mac", re.I)),
    ("Linux", re.compile(r"Linux", re.I)),
]

# Edge and Opera UAs also carry "Chrome", Chrome UAs also carry "Safari"
_BROWSER_PATTERNS = [
    ("Edge", re.compile(r"Edg(e|A|iOS)?/", re.I)),
    ("Opera", re.compile(r"Opera|OPR/", re.I)),
    ("Firefox", re.compile(r"Firefox|FxiOS", re.I)),
    ("Chrome", re.compile(r"Chrome|CriOS", re.I)),
    ("Safari", re.compile(r"Safari", re.I)),
]

_MOBILE = re.compile(r"Mobile|Tablet|Android|iPhone|iPad", re.I)


def _first_match(patterns, ua: str) -> str:
    for name, pattern in patterns:
        if pattern.search(ua):
            return name
    return UNKNOWN


def device_info_from_user_agent(user_agent: Optional[str], screen_size: Optional[str] = None) -> Dict[str, str]:
    """Coarse device description stored with each scan event"""
    if not user_agent:
        return {"type": "server", "os": UNKNOWN, "browser": UNKNOWN, "screenSize": screen_size or UNKNOWN}
    return {
        "type": "mobile" if _MOBILE.search(user_agent) else "desktop",
        "os": _first_match(_OS_PATTERNS, user_agent),
        "browser": _first_match(_BROWSER_PATTERNS, user_agent),
        "screenSize": screen_size or UNKNOWN,
    }
