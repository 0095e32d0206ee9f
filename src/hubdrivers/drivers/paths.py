"""Object key helpers shared by every backend.

Keys live in a flat namespace with ``/``-delimited hierarchy:
    {storage_top_level}/{path}
"""

SEPARATOR = "/"


def is_path_valid(path: str) -> bool:
    """Reject any path containing ``..`` anywhere."""
    return ".." not in path


def object_key(storage_top_level: str, path: str) -> str:
    return f"{storage_top_level}{SEPARATOR}{path}"


def strip_prefix(name: str, prefix: str) -> str:
    """Return ``name`` relative to ``prefix`` (prefix plus one separator removed)."""
    rest = name[len(prefix) :] if name.startswith(prefix) else name
    return rest[1:] if rest.startswith(SEPARATOR) else rest
