"""Path syntax translation and output naming.

Catalog paths are written by the media server in POSIX form. Workers may
reach the same files over an SMB share (``//server/share/...``), which
Windows tooling needs in UNC form (``\\\\server\\share\\...``).
"""

import re

_DRIVE_PATH = re.compile(r"^[a-zA-Z]:\\")
_DRIVE_UNIX = re.compile(r"^[a-zA-Z]:/")
_DRIVE_ONLY = re.compile(r"^[a-zA-Z]:$")
_INVALID_CHARS = re.compile(r'[<>:"|?*]')
_BRACKETS = re.compile(r"[\[\]]")
_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[\\/]")
_DOT_NAMES = frozenset({".", ".."})

OUTPUT_PREFIX = "HLS"
MASTER_PLAYLIST = "master.m3u8"


def to_windows_path(path: str) -> str:
    """Convert a ``//server/share`` path to UNC form.

    Drive-letter paths and paths already in UNC form are returned as-is,
    as is anything that is not a network path.
    """
    if _DRIVE_PATH.match(path) or path.startswith("\\\\"):
        return path
    if path.startswith("//"):
        return path.replace("/", "\\")
    return path


def to_unix_path(path: str) -> str:
    """Convert a Windows path to forward-slash form.

    ``C:\\Media\\x`` becomes ``/c/Media/x``; UNC ``\\\\server\\share``
    becomes ``//server/share``. Paths without backslashes are unchanged.
    """
    if "\\" not in path:
        return path
    unix_path = path.replace("\\", "/")
    if _DRIVE_UNIX.match(unix_path):
        unix_path = f"/{unix_path[0].lower()}{unix_path[2:]}"
    return unix_path


def sanitize_path_component(component: str) -> str:
    """Make a single path component safe on every filesystem we write to.

    Removes characters Windows rejects (``<>:"|?*``) and square brackets,
    turns path separators into ``-`` so a title never adds a directory
    level, collapses runs of whitespace, and trims.

    Raises:
        ValueError: If the result is ``.`` or ``..``.
    """
    cleaned = _SEPARATORS.sub("-", component)
    cleaned = _INVALID_CHARS.sub("", cleaned)
    cleaned = _BRACKETS.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    cleaned = cleaned.strip()
    if cleaned in _DOT_NAMES:
        raise ValueError(f"Not a usable path component: {component!r}")
    return cleaned


def _sanitize_part(part: str) -> str:
    # . and .. inside a full path are navigation, not names
    return part if part in _DOT_NAMES else sanitize_path_component(part)


def sanitize_path(path: str) -> str:
    """Sanitize every component of a path.

    UNC server and share names and a leading drive letter are preserved.
    Relative components (``.`` and ``..``) are kept as they are.
    The separator style of the input is kept.
    """
    separator = "\\" if "\\" in path else "/"

    if path.startswith("\\\\") or path.startswith("//"):
        prefix = path[:2]
        parts = _SEPARATORS.split(path[2:])
        if len(parts) >= 2:
            server, share = parts[0], parts[1]
            rest = [_sanitize_part(p) for p in parts[2:]]
            return prefix + separator.join([server, share, *rest])

    parts = _SEPARATORS.split(path)
    if parts and _DRIVE_ONLY.match(parts[0]):
        return parts[0] + separator + separator.join(
            _sanitize_part(p) for p in parts[1:]
        )
    return separator.join(_sanitize_part(p) for p in parts)


def movie_output_names(title: str) -> tuple[str, ...]:
    """Directory names of a movie's package, relative to its source folder."""
    return (sanitize_path_component(f"{OUTPUT_PREFIX} {title}"),)


def episode_output_names(
    series_title: str, season_number: int, episode_number: int, title: str
) -> tuple[str, ...]:
    """Directory names of an episode's package, relative to its source folder.

    One level for the series and one for the episode, e.g.
    ``("HLS Show", "HLS S1E2 Pilot")``.
    """
    return (
        sanitize_path_component(f"{OUTPUT_PREFIX} {series_title}"),
        sanitize_path_component(
            f"{OUTPUT_PREFIX} S{season_number}E{episode_number} {title}"
        ),
    )
