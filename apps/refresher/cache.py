"""
Cache file store.

One flat file per content type under the cache directory. Files are
overwritten through a temporary sibling and os.replace, so readers of the
cache (the /cache static route) never observe a partial write.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

CACHE_FILE_MODE = 0o644


def ensure_cache_dir(cache_dir: PathLike) -> Path:
    """
    Create the cache directory recursively if it does not exist.

    Args:
        cache_dir: Cache directory path

    Returns:
        Resolved cache directory path
    """
    path = Path(cache_dir).resolve()
    path.mkdir(parents=True, exist_ok=True)
    logger.info("Cache directory ready at %s", str(path))
    return path


def artifact_path(cache_dir: PathLike, filename: str) -> Path:
    """Path of a cache file; rejects names that would escape the directory."""
    if not filename or Path(filename).name != filename:
        raise ValueError(f"Invalid cache filename: {filename!r}")
    return Path(cache_dir) / filename


def write_artifact(cache_dir: PathLike, filename: str, text: str) -> Path:
    """
    Atomically overwrite a cache file with UTF-8 text.

    Args:
        cache_dir: Cache directory (created if missing)
        filename: Flat file name inside the cache directory
        text: Decoded content

    Returns:
        Path of the written file

    Raises:
        OSError: If the file cannot be written
    """
    path = artifact_path(cache_dir, filename)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{filename}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        # mkstemp creates files as 0600
        os.chmod(tmp_path, CACHE_FILE_MODE)
        os.replace(tmp_path, path)
    except OSError:
        try:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
        except OSError:
            pass
        raise

    logger.debug("Wrote cache file: path=%s, chars=%d", str(path), len(text))
    return path
