"""
Path normalization for service registration and lookup.
"""

ROOT_PATH = "/"
SEPARATOR = "/"


def strip_slashes(path: str) -> str:
    """Remove leading and trailing separators from a path."""
    return path.strip(SEPARATOR)


def normalize_path(path: str) -> str:
    """
    Canonicalize a service path.

    "/a/b/", "a/b" and "/a/b" all map to "a/b"; an empty result maps to the
    root path "/". Normalizing an already normalized path returns it unchanged.
    """
    return strip_slashes(path) or ROOT_PATH


def join_path(prefix: str, sub_path: str) -> str:
    """Join a mount prefix and a sub path into a normalized path."""
    return normalize_path(f"{prefix}{SEPARATOR}{sub_path}")
