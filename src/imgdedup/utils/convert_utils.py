"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
from typing import Tuple


class ConvertUtils:
    @staticmethod
    def parse_hash_size(size_str: str) -> Tuple[int, int]:
        """
        Parse a hash size given as a single number ('24', same as '24,24')
        or as two comma-separated numbers ('32,24' = width 32, height 24).
        Extraneous whitespace is tolerated.
        Raises ValueError for zero, negative or malformed values.
        """
        parts = [p.strip() for p in size_str.split(",")]

        def parse_nonzero(num: str) -> int:
            try:
                value = int(num)
            except ValueError:
                raise ValueError(f"Invalid hash size value: \"{num}\"")
            if value == 0:
                raise ValueError("Hash size cannot be 0")
            if value < 0:
                raise ValueError(f"Negative hash size not allowed: \"{num}\"")
            return value

        if len(parts) == 1:
            n = parse_nonzero(parts[0])
            return n, n
        if len(parts) == 2:
            return parse_nonzero(parts[0]), parse_nonzero(parts[1])
        raise ValueError(f"Too many comma-separated values: \"{size_str}\"")

    @staticmethod
    def is_valid_hash_size(size_str: str) -> bool:
        try:
            ConvertUtils.parse_hash_size(size_str)
            return True
        except ValueError:
            return False

    @staticmethod
    def truncate_name(name: str, max_len: int) -> str:
        """Cut a file name to at most max_len characters."""
        return name if len(name) <= max_len else name[:max_len]

    @staticmethod
    def seconds_to_human(seconds: float) -> str:
        """
        Convert a duration to a short human-readable string (e.g., 850ms, 12.4s, 3m05s).
        """
        if seconds < 0:
            return "0ms"
        if seconds < 1:
            return f"{seconds * 1000:.0f}ms"
        if seconds < 60:
            return f"{seconds:.1f}s"
        minutes, secs = divmod(int(seconds), 60)
        return f"{minutes}m{secs:02d}s"
