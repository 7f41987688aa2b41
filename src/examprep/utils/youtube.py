"""YouTube URL helpers for video lessons.

Functions:
- extract_youtube_id(url) -> str | None: 11-char video id from any common URL form
- youtube_thumbnail(video_id, quality) -> str: img.youtube.com thumbnail URL
"""

import re

# watch?v=, &v=, youtu.be/, embed/, v/ and u/x/ forms
YOUTUBE_ID_PATTERN = re.compile(r"^.*(youtu.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")

THUMBNAIL_FILES = {
    "maxres": "maxresdefault.jpg",
    "hq": "hqdefault.jpg",
    "mq": "mqdefault.jpg",
}


def extract_youtube_id(url: str | None) -> str | None:
    """Extract the video id from a YouTube URL.

    Args:
        url: Any YouTube link (watch, short, embed, legacy v/ or u/ forms)

    Returns:
        The 11-character video id, or None if the URL is not recognised.
    """
    if not url:
        return None
    match = YOUTUBE_ID_PATTERN.match(url)
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


def youtube_thumbnail(video_id: str, quality: str = "hq") -> str:
    """Thumbnail URL for a video id.

    Unknown qualities fall back to the medium-quality image.
    """
    filename = THUMBNAIL_FILES.get(quality, THUMBNAIL_FILES["mq"])
    return f"https://img.youtube.com/vi/{video_id}/{filename}"
