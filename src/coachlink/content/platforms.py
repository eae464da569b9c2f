import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

# Hostname fragment -> platform tag.
SUPPORTED_PLATFORMS = {
    "youtube.com": "YouTube",
    "youtu.be": "YouTube",
    "instagram.com": "Instagram",
    "tiktok.com": "TikTok",
    "facebook.com": "Facebook",
    "fb.watch": "Facebook",
}

YOUTUBE_ID_RE = re.compile(r'^[a-zA-Z0-9_-]{11}$')


def _hostname(url: str) -> str:
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def detect_platform(url: str) -> Optional[str]:
    """Return the platform tag for a supported social-media URL, or None."""
    hostname = _hostname(url)
    for fragment, platform in SUPPORTED_PLATFORMS.items():
        if hostname == fragment or hostname.endswith("." + fragment):
            return platform
    return None


def youtube_video_id(url: str) -> Optional[str]:
    """Extract the 11 character video id from watch, short, embed and youtu.be links."""
    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()
    candidate = None
    if hostname == "youtu.be":
        candidate = parsed.path.lstrip("/").split("/")[0]
    elif hostname.endswith("youtube.com"):
        if parsed.path == "/watch":
            candidate = parse_qs(parsed.query).get("v", [None])[0]
        else:
            parts = [p for p in parsed.path.split("/") if p]
            if len(parts) >= 2 and parts[0] in ("shorts", "embed", "live", "v"):
                candidate = parts[1]
    if candidate and YOUTUBE_ID_RE.match(candidate):
        return candidate
    return None


def default_thumbnail(url: str) -> Optional[str]:
    video_id = youtube_video_id(url)
    if video_id:
        return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"
    return None
