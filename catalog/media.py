import os
from dataclasses import dataclass

VIDEO_TYPES = (
    "video/mp4",
    "video/webm",
    "video/ogg",
    "video/quicktime",
    "video/x-msvideo",
)
VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi")
IMAGE_EXTENSIONS = ("png", "jpg", "jpeg", "gif", "webp")
UPLOAD_EXTENSIONS = IMAGE_EXTENSIONS + tuple(ext.lstrip(".") for ext in VIDEO_EXTENSIONS)


@dataclass
class MediaItem:
    url: str
    position: int = 0
    is_video: bool = False


def is_video_type(content_type: str) -> bool:
    return (content_type or "").lower() in VIDEO_TYPES


def is_accepted_media(content_type: str) -> bool:
    content_type = (content_type or "").lower()
    return content_type.startswith("image/") or content_type in VIDEO_TYPES


def is_video_file(url: str) -> bool:
    """Guess from the file extension, for media stored without a type flag."""
    path = (url or "").split("?", 1)[0]
    return os.path.splitext(path)[1].lower() in VIDEO_EXTENSIONS


def file_extension(filename: str) -> str:
    if "." not in (filename or ""):
        return ""
    return filename.rsplit(".", 1)[-1].lower()
