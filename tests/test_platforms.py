import pytest

from coachlink.content.platforms import default_thumbnail, detect_platform, youtube_video_id


@pytest.mark.parametrize(
    "url,platform",
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "YouTube"),
        ("https://youtu.be/dQw4w9WgXcQ", "YouTube"),
        ("https://m.youtube.com/shorts/dQw4w9WgXcQ", "YouTube"),
        ("https://www.instagram.com/reel/Cx1/", "Instagram"),
        ("https://www.tiktok.com/@coach/video/123", "TikTok"),
        ("https://fb.watch/abc/", "Facebook"),
        ("https://www.facebook.com/watch/?v=1", "Facebook"),
        ("https://vimeo.com/1", None),
        ("https://notyoutube.com/watch?v=dQw4w9WgXcQ", None),
        ("not a url", None),
    ],
)
def test_detect_platform(url, platform):
    assert detect_platform(url) == platform


def test_youtube_video_id_variants():
    assert youtube_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://www.youtube.com/embed/dQw4w9WgXcQ") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://youtu.be/dQw4w9WgXcQ?si=x") == "dQw4w9WgXcQ"
    assert youtube_video_id("https://www.youtube.com/watch?v=short") is None
    assert youtube_video_id("https://www.youtube.com/channel/UC123") is None


def test_default_thumbnail_only_for_youtube():
    assert default_thumbnail("https://youtu.be/dQw4w9WgXcQ") == (
        "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    )
    assert default_thumbnail("https://www.tiktok.com/@coach/video/123") is None
