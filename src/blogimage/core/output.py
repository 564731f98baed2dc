"""Resolve where a generated image is written and write it.

Resolution rules for a caller-supplied path:

- no path: ``<output_dir>/<prefix>-<timestamp><ext>``
- a path ending in ``/`` or ``\\``, or naming an existing directory: a
  generated filename is appended
- a path without a suffix: the suffix for the MIME type is appended

``<output_dir>`` comes from :class:`~blogimage.core.config.BlogImageConfig`
(``IMAGE_OUTPUT_DIR``), falling back to ``generated-images`` under the
current working directory.

Writes create missing parent directories and silently overwrite an existing
file at the final path. There is no automatic versioning.

Generated names have one-second resolution. Two requests with the same
prefix in the same UTC second resolve to the same path and the later write
replaces the earlier file.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import BlogImageConfig

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".png"

MIME_EXTENSIONS: dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def extension_for_mime(mime_type: str | None) -> str:
    """Return the file extension for a MIME type, ``.png`` if unknown."""
    return MIME_EXTENSIONS.get((mime_type or "").lower(), DEFAULT_EXTENSION)


def generate_filename(
    prefix: str = "blog-image",
    mime_type: str = "image/png",
    now: datetime | None = None,
) -> str:
    """Generate ``<prefix>-YYYY-MM-DDTHH-MM-SS<ext>``.

    The timestamp is UTC, truncated to whole seconds, with ``:`` and ``.``
    replaced by ``-`` so it is safe on every filesystem.
    """
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    timestamp = moment.strftime("%Y-%m-%dT%H-%M-%S")
    return f"{prefix}-{timestamp}{extension_for_mime(mime_type)}"


def sanitize_filename(name: str) -> str:
    """Make ``name`` safe to use as a filename stem.

    Unsafe characters become ``-``, runs of dashes collapse, leading and
    trailing dashes are removed, the result is lowercased and capped at 100
    characters.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9_-]", "-", name)
    cleaned = re.sub(r"-+", "-", cleaned)
    cleaned = cleaned.strip("-")
    return cleaned.lower()[:100]


def default_output_dir(config: BlogImageConfig) -> Path:
    """Return the absolute default output directory."""
    return Path(config.output_dir).expanduser().resolve()


def _looks_like_directory(supplied: str, path: Path) -> bool:
    return supplied.endswith(("/", "\\")) or path.is_dir()


def resolve_output_path(
    supplied: str | None,
    mime_type: str,
    config: BlogImageConfig,
    prefix: str | None = None,
    now: datetime | None = None,
) -> Path:
    """Determine the absolute file path for an image.

    Args:
        supplied: Caller-supplied file or directory path, or None.
        mime_type: MIME type of the image, used for the extension.
        config: Configuration providing the default directory and prefix.
        prefix: Filename prefix overriding ``config.filename_prefix``.
        now: Timestamp for generated filenames (defaults to the current time).

    Returns:
        Absolute path the image should be written to. Nothing is created on
        disk by this function.
    """
    filename = generate_filename(prefix or config.filename_prefix, mime_type, now)

    if not supplied:
        return default_output_dir(config) / filename

    path = Path(supplied).expanduser().resolve()
    if _looks_like_directory(supplied, path):
        return path / filename

    if not path.suffix:
        path = path.with_name(path.name + extension_for_mime(mime_type))
    return path


def write_image(path: Path, data: bytes) -> Path:
    """Write ``data`` to ``path`` in a single call.

    Parent directories are created as needed. An existing file at ``path``
    is overwritten.

    Returns:
        The absolute path that was written.

    Raises:
        OSError: If the directory cannot be created or the file cannot be
            written.
    """
    path = Path(path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists():
        logger.info(f"Overwriting existing file: {path}")
    path.write_bytes(data)
    logger.info(f"Saved image ({len(data)} bytes) to: {path}")
    return path


def format_file_size(size: int) -> str:
    """Format a byte count as ``B``, ``KB`` or ``MB``."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
