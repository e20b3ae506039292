"""Storage object keys for uploaded files.

Turns untrusted, possibly Unicode-laden file names into keys that are safe for
the storage bucket, and composes the final ``{owner}/{timestamp}-{index}-{name}``
path for a file in an upload batch.

The key functions never raise or log. Diagnostics are opt-in through
:func:`describe_code_points` and :func:`log_code_points`.
"""

from __future__ import annotations

import logging
import re
import time
import unicodedata
import warnings
from typing import Callable, Iterator, List, NamedTuple, Optional

MAX_NAME_LENGTH = 200
DEFAULT_EXTENSION = ".jpg"
TRUNCATED_SUFFIX = "_truncated"
# Room kept free for the suffix when cutting a long base name.
_TRUNCATE_RESERVE = 10

_INVISIBLE_CHARS = re.compile(r"[\u0000-\u001f\u007f-\u009f\u00ad\u200b-\u200d\ufeff]")
_WHITESPACE_RUN = re.compile(r"\s+")
_DISALLOWED_CHARS = re.compile(r"[^a-zA-Z0-9._/-]")
_UNDERSCORE_RUN = re.compile(r"_+")
_SLASH_RUN = re.compile(r"/+")

_DESCRIPTIONS = {
    0x00AD: "Soft Hyphen",
    0x200B: "Zero-width Space",
    0x200C: "Zero-width Non-joiner",
    0x200D: "Zero-width Joiner",
    0xFEFF: "Byte Order Mark",
    0x0020: "Space",
    0x00A0: "Non-breaking Space",
}
_PROBLEMATIC = frozenset({0x00AD, 0x200B, 0x200C, 0x200D, 0xFEFF})


def sanitize_key(raw_name: str) -> str:
    """Sanitize a user-provided file name into a storage key fragment.

    The result only holds lowercase ``[a-z0-9._/-]``, never starts or ends with
    ``_`` or ``/`` and has no doubled ``_`` or ``/``. Empty input (or input made
    only of invisible characters) yields ``""``.
    """

    sanitized = unicodedata.normalize("NFKD", raw_name or "")
    sanitized = _INVISIBLE_CHARS.sub("", sanitized)
    sanitized = _WHITESPACE_RUN.sub("_", sanitized)
    sanitized = _DISALLOWED_CHARS.sub("_", sanitized)
    sanitized = _UNDERSCORE_RUN.sub("_", sanitized)
    sanitized = _SLASH_RUN.sub("/", sanitized)
    sanitized = sanitized.strip("_/").lower()
    if sanitized.startswith("/"):
        sanitized = sanitized[1:]
    return sanitized.replace("\\", "/")


def sanitize_file_name(file_name: str) -> str:
    """Deprecated alias of :func:`sanitize_key`."""

    warnings.warn(
        "sanitize_file_name() is deprecated; use sanitize_key()",
        DeprecationWarning,
        stacklevel=2,
    )
    return sanitize_key(file_name)


def get_file_extension(name: str) -> str:
    """Return ``name``'s extension including the dot, or ``""``.

    A dot at position 0 does not start an extension, so ``".gitignore"`` has none.
    """

    last_dot = name.rfind(".")
    return name[last_dot:] if last_dot > 0 else ""


def current_millis() -> int:
    return int(time.time() * 1000)


def build_storage_path(
    owner_id: str,
    raw_name: str,
    index: int = 0,
    *,
    clock: Optional[Callable[[], int]] = None,
) -> str:
    """Compose ``{owner_id}/{timestamp_ms}-{index}-{name}`` for an uploaded file.

    ``index`` must be distinct per file within one batch; together with the
    timestamp it is what keeps keys from colliding. ``clock`` returns epoch
    milliseconds and defaults to the wall clock.
    """

    name = _neutralize_dot_segments(sanitize_key(raw_name))
    if not name:
        name = f"image_{index}{DEFAULT_EXTENSION}"

    if len(name) > MAX_NAME_LENGTH:
        extension = get_file_extension(name)
        budget = MAX_NAME_LENGTH - _TRUNCATE_RESERVE
        # A dot in a directory part is not an extension worth keeping.
        if "/" in extension or len(extension) >= budget:
            extension = ""
        keep = budget - len(extension)
        base = name[:keep].rstrip("_")
        name = f"{base}{TRUNCATED_SUFFIX}{extension}"

    if not get_file_extension(name):
        name += DEFAULT_EXTENSION

    owner = (owner_id or "").lstrip("/")
    timestamp = (clock or current_millis)()
    path = f"{owner}/{timestamp}-{index}-{name}"
    return _SLASH_RUN.sub("/", path).lstrip("/")


def _neutralize_dot_segments(name: str) -> str:
    """Replace ``.`` and ``..`` path segments with ``_``.

    Keeps a name from climbing out of its owner prefix once the key is used
    in a URL path.
    """

    if "." not in name:
        return name
    segments = ["_" if segment in (".", "..") else segment for segment in name.split("/")]
    return "/".join(segments)


class CodePointInfo(NamedTuple):
    index: int
    character: str
    code_point: int
    code_point_hex: str
    is_visible: bool
    description: str

    @property
    def is_problematic(self) -> bool:
        return not self.is_visible or self.code_point in _PROBLEMATIC


class CodePointSequence:
    """Per-code-point breakdown of a file name.

    Computed lazily on iteration; iterating again starts over.
    """

    def __init__(self, raw_name: str):
        self.raw_name = raw_name or ""

    def __iter__(self) -> Iterator[CodePointInfo]:
        for index, char in enumerate(self.raw_name):
            code_point = ord(char)
            yield CodePointInfo(
                index=index,
                character=char,
                code_point=code_point,
                code_point_hex=f"U+{code_point:04X}",
                is_visible=_is_visible(char),
                description=_DESCRIPTIONS.get(code_point, "Regular Character"),
            )

    def __len__(self) -> int:
        return len(self.raw_name)


def _is_visible(char: str) -> bool:
    if char.isspace():
        return False
    return _INVISIBLE_CHARS.match(char) is None


def describe_code_points(raw_name: str) -> CodePointSequence:
    return CodePointSequence(raw_name)


def find_problematic_code_points(raw_name: str) -> List[CodePointInfo]:
    return [info for info in describe_code_points(raw_name) if info.is_problematic]


def log_code_points(raw_name: str, logger: Optional[logging.Logger] = None) -> List[CodePointInfo]:
    """Log the code point table for ``raw_name``; returns the problematic entries."""

    log = logger or logging.getLogger(__name__)
    log.debug("Analyzing file name %r (%s code points)", raw_name, len(raw_name or ""))
    problematic: List[CodePointInfo] = []
    for info in describe_code_points(raw_name):
        log.debug(
            "  [%s] %r %s visible=%s %s",
            info.index,
            info.character,
            info.code_point_hex,
            info.is_visible,
            info.description,
        )
        if info.is_problematic:
            problematic.append(info)

    if problematic:
        log.warning(
            "File name %r contains problematic characters: %s",
            raw_name,
            ", ".join(f"{info.code_point_hex} ({info.description})" for info in problematic),
        )
    return problematic


__all__ = [
    "CodePointInfo",
    "CodePointSequence",
    "build_storage_path",
    "describe_code_points",
    "find_problematic_code_points",
    "get_file_extension",
    "log_code_points",
    "sanitize_file_name",
    "sanitize_key",
]
