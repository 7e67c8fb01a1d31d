import re
from typing import Optional
from urllib.parse import quote, urlparse

from vaulted.core.models import Quality

# Ordered by precedence: first matching tier wins
QUALITY_RULES = [
    (Quality.UHD, ("2160p", "4k", "uhd")),
    (Quality.FHD, ("1080p", "fhd")),
    (Quality.HD, ("720p", "hd")),
    (Quality.SD, ("480p", "sd")),
]

VIDEO_EXTENSIONS = ("mp4", "mkv", "avi", "mov", "wmv", "webm", "m4v", "ts", "m2ts")
PLAYABLE_CONTAINERS = ("mp4", "mkv", "webm", "m3u8", "avi", "mov")
ARCHIVE_EXTENSIONS = ("iso", "rar", "zip", "7z", "tar", "gz")

INFO_HASH_RE = re.compile(r"btih:([a-fA-F0-9]{40}|[a-zA-Z2-7]{32})", re.IGNORECASE)
SIZE_UNITS = {"KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3, "TB": 1024 ** 4}


class VideoParser:
    @staticmethod
    def get_quality(text: str) -> Quality:
        text = (text or "").lower()
        for quality, tokens in QUALITY_RULES:
            if any(x in text for x in tokens):
                return quality
        return Quality.UNKNOWN

    @staticmethod
    def get_seeds(title: str) -> int:
        # Torrentio titles: "👤 42 💾 1.4 GB ⚙️ ThePirateBay"
        match = re.search(r"👤\s*(\d+)", title or "") or re.search(r"seeds?:?\s*(\d+)", title or "", re.IGNORECASE)
        return int(match.group(1)) if match else 0

    @staticmethod
    def get_size(title: str) -> str:
        match = (
            re.search(r"💾\s*([\d.]+\s*[GMTK]B)", title or "", re.IGNORECASE)
            or re.search(r"([\d.]+\s*[GMTK]B)", title or "", re.IGNORECASE)
        )
        return match.group(1) if match else ""

    @staticmethod
    def parse_size(label: str) -> int:
        """
        Converts a size label ("1.4 GB", "700MB") to bytes. Unparseable labels are 0.
        """
        match = re.search(r"(\d+\.?\d*)\s*(KB|MB|GB|TB)", label or "", re.IGNORECASE)
        if not match:
            return 0
        return int(float(match.group(1)) * SIZE_UNITS[match.group(2).upper()])

    @staticmethod
    def format_size(size_bytes: int) -> str:
        size = float(size_bytes or 0)
        for unit in ("B", "KB", "MB", "GB"):
            if size < 1024:
                return f"{size:.2f} {unit}" if unit != "B" else f"{int(size)} B"
            size /= 1024
        return f"{size:.2f} TB"

    @staticmethod
    def get_info_hash(magnet: str) -> Optional[str]:
        match = INFO_HASH_RE.search(magnet or "")
        return match.group(1).lower() if match else None

    @staticmethod
    def build_magnet(info_hash: str, filename: Optional[str] = None) -> str:
        magnet = f"magnet:?xt=urn:btih:{info_hash}"
        if filename:
            magnet += f"&dn={quote(filename, safe='')}"
        return magnet

    @staticmethod
    def is_magnet(url: str) -> bool:
        return (url or "").lower().startswith("magnet:")

    @staticmethod
    def is_http(url: str) -> bool:
        return urlparse(url or "").scheme.lower() in ("http", "https")

    @staticmethod
    def get_extension(url: str) -> str:
        path = urlparse(url or "").path if "://" in (url or "") else (url or "")
        name = path.rsplit("/", 1)[-1]
        return name.rsplit(".", 1)[-1].lower() if "." in name else ""

    @staticmethod
    def is_archive(url: str) -> bool:
        return VideoParser.get_extension(url) in ARCHIVE_EXTENSIONS

    @staticmethod
    def is_video_file(path: str) -> bool:
        return VideoParser.get_extension(path) in VIDEO_EXTENSIONS

    @staticmethod
    def is_playable_container(url: str) -> bool:
        return VideoParser.get_extension(url) in PLAYABLE_CONTAINERS


def classify(text: str) -> Quality:
    return VideoParser.get_quality(text)
