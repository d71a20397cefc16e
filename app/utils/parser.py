import re
from typing import List

from app.models import TorrentFile

VIDEO_EXTENSIONS = (".mp4", ".mkv", ".avi", ".mov", ".m4v", ".webm")

class VideoParser:
    @staticmethod
    def get_quality(filename: str) -> str:
        if re.search(r"1080p|1920x1080", filename, re.IGNORECASE):
            return "1080p"
        if re.search(r"720p|1280x720", filename, re.IGNORECASE):
            return "720p"
        if re.search(r"480p|854x480", filename, re.IGNORECASE):
            return "480p"
        if re.search(r"4k|2160p", filename, re.IGNORECASE):
            return "4K"
        return "Unknown"

    @staticmethod
    def is_video(filename: str) -> bool:
        return filename.lower().endswith(VIDEO_EXTENSIONS)

    @staticmethod
    def format_size(size_bytes: int) -> str:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"

    @staticmethod
    def select_files(files: List[TorrentFile], limit: int = 3) -> List[TorrentFile]:
        """
        Video files only, largest first (the main episode is assumed to be the
        biggest file), capped at `limit`. Ties keep upstream order.
        """
        video_files = [f for f in files if VideoParser.is_video(f.name)]
        video_files.sort(key=lambda f: f.size, reverse=True)
        return video_files[:max(limit, 0)]
