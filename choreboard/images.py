"""Discovery of the image files offered for chores and blueprints."""

from __future__ import annotations

import logging
import os
from operator import attrgetter

log = logging.getLogger(__name__)

DEFAULT_IMAGE_DIR = "./static/img"
IMAGE_EXTENSION = ".avif"


def _extension(name: str) -> str:
    index = name.rfind(".")
    return name[index:] if index >= 0 else ""


def get_image_files(directory: str | os.PathLike = DEFAULT_IMAGE_DIR) -> list[str]:
    """Return the names of the image files directly inside a directory, sorted."""
    try:
        with os.scandir(directory) as iterator:
            entries = sorted(iterator, key=attrgetter("name"))
    except OSError as exc:
        log.error("Error reading image directory %s: %s", directory, exc)
        raise
    return [
        entry.name
        for entry in entries
        if not entry.is_dir(follow_symlinks=False) and _extension(entry.name) == IMAGE_EXTENSION
    ]