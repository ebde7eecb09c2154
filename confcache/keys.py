"""Cache key derivation for config source paths."""

from pathlib import Path, PurePath, PureWindowsPath


def _is_absolute(path: str | PurePath) -> bool:
    # Drive-letter paths count as absolute on every platform
    return PurePath(path).is_absolute() or PureWindowsPath(str(path)).is_absolute()


def cache_key_for(path: str | PurePath, app_root: str | PurePath) -> str:
    """Get the cache key for a config source path.

    Relative paths are taken relative to the application root, so a file
    gets the same key however it is named. Paths under the root use the
    root-relative remainder, so keys stay the same across deployments
    rooted in different places. Other paths are flattened by dropping
    drive colons and replacing separators with underscores. The flattened
    form is deterministic but not collision-free for arbitrary input
    ("a_b/c" and "a/b_c" collide); config paths are chosen by developers,
    not users.

    Args:
        path: Path of the config source, absolute or relative to app_root
        app_root: Application root directory

    Returns:
        Cache key string
    """
    root = PurePath(app_root)
    source = PurePath(path) if _is_absolute(path) else root / path

    if source.is_relative_to(root) and source != root:
        return source.relative_to(root).as_posix()

    return str(source).replace(":", "").replace("\\", "_").replace("/", "_")


def resolve_app_root(app_root: str | PurePath | None) -> Path:
    """Get the application root, defaulting to the current directory."""
    if app_root is None:
        return Path.cwd()
    return Path(app_root)
