"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
import math


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: float) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        units = ["B", "KB", "MB", "GB", "TB", "PB"]
        for unit in units:
            if size_bytes < 1024:
                return f"{size_bytes:.2f}{unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f}EB"

    @staticmethod
    def rate_to_human(bytes_per_second: float) -> str:
        """'1.50MB/s'"""
        return f"{ConvertUtils.bytes_to_human(bytes_per_second)}/s"

    @staticmethod
    def seconds_to_eta(seconds: float) -> str:
        """
        Format a remaining time as HH:MM:SS. Infinite or unknown time reads 'forever'.
        """
        if seconds is None or math.isinf(seconds) or math.isnan(seconds):
            return "forever"
        seconds = max(0, int(seconds))
        return f"{seconds // 3600:02d}:{seconds // 60 % 60:02d}:{seconds % 60:02d}"

    @staticmethod
    def percent(done: int, total: int) -> str:
        """Share of work done. An empty job is complete."""
        ratio = done / total if total else 1.0
        return f"{ratio * 100:.2f}%"
