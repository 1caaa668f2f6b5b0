"""Media classification for @-mentioned files.

Selecting a media file attaches it instead of inserting its path, so the
file provider needs to know which extensions count as media.
"""

from __future__ import annotations

import enum
from pathlib import PurePosixPath


class AttachmentKind(enum.Enum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


EXT_TO_MIME: dict[str, str] = {
    # images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".ico": "image/x-icon",
    ".heic": "image/heic",
    ".heif": "image/heif",
    # video
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".mpeg": "video/mpeg",
    ".mpg": "video/mpeg",
    # audio
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".m4a": "audio/mp4",
    ".wma": "audio/x-ms-wma",
    # documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
}


def _extension(path: str) -> str:
    return PurePosixPath(path.replace("\\", "/")).suffix.lower()


def detect_mime_type(path: str) -> str | None:
    return EXT_TO_MIME.get(_extension(path))


def is_supported_media(path: str) -> bool:
    return _extension(path) in EXT_TO_MIME


def attachment_kind(path: str) -> AttachmentKind | None:
    mime = detect_mime_type(path)
    if mime is None:
        return None
    top = mime.split("/", 1)[0]
    if top in ("image", "video", "audio"):
        return AttachmentKind(top)
    return AttachmentKind.DOCUMENT
