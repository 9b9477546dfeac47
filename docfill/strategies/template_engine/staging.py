"""Staging file lifecycle.

A two-pass build serializes the mutated document to a staging file so the
scalar engine, which only loads serialized templates, can run on it. Staging
files get collision-resistant names and are always deleted, whatever the
outcome of the build.
"""

import logging
import random
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

_MAX_CREATE_ATTEMPTS = 10


def generate_staging_name(prefix: str | None = "temp-", suffix: str | None = ".docx") -> str:
    """Generate a staging file name.

    Format: ``prefix + yyyyMMddHHmmssSSS + NNN + suffix`` where ``NNN`` is a
    zero-padded random number, e.g. ``temp-20240520153022123456.docx``.

    Args:
        prefix: File name prefix; omitted when None.
        suffix: File extension; a leading dot is added when missing.

    Returns:
        The generated file name.
    """
    now = datetime.now()
    timestamp = now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"
    name = f"{prefix or ''}{timestamp}{random.randrange(1000):03d}"
    if suffix:
        if not suffix.startswith("."):
            name += "."
        name += suffix
    return name


def create_staging_file(
    directory: str | Path,
    prefix: str | None = "temp-",
    suffix: str | None = ".docx",
) -> Path:
    """Create an empty staging file with a fresh name.

    Creation is exclusive, so two concurrent builds never share a file.

    Raises:
        FileExistsError: If no free name was found.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    for _ in range(_MAX_CREATE_ATTEMPTS):
        path = directory / generate_staging_name(prefix, suffix)
        try:
            with open(path, "xb"):
                pass
        except FileExistsError:
            continue
        logger.debug(f"Created staging file: {path}")
        return path
    raise FileExistsError(f"Could not create a unique staging file in {directory}")


def delete_staging_file(path: Path) -> None:
    """Delete a staging file. Failures are logged, never raised."""
    try:
        path.unlink(missing_ok=True)
        logger.debug(f"Deleted staging file: {path}")
    except OSError as e:
        logger.warning(f"Failed to delete staging file {path}: {e}")


@contextmanager
def staging_file(
    directory: str | Path,
    prefix: str | None = "temp-",
    suffix: str | None = ".docx",
) -> Iterator[Path]:
    """Provide a staging file that is deleted on every exit path.

    Example:
        ```python
        with staging_file(settings.staging_dir) as path:
            document.save(path)
            data = renderer.render(path, bindings)
        ```
    """
    path = create_staging_file(directory, prefix, suffix)
    try:
        yield path
    finally:
        delete_staging_file(path)

