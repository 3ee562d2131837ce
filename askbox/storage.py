"""Flat-file access for the line-oriented data files."""
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, List, Union

from askbox.utils.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@contextmanager
def open_data_file(path: PathLike, mode: str = "r"):
    """Context manager for a data file handle.

    Any OS-level failure while opening or using the file is logged and
    re-raised as StorageUnavailable.
    """
    handle = None
    try:
        if "r" in mode:
            # Undecodable bytes survive as surrogates for the codec to reject per line
            handle = open(path, mode, encoding="utf-8", errors="surrogateescape")
        else:
            handle = open(path, mode, encoding="utf-8", newline="\n")
        yield handle
    except OSError as e:
        logger.error(f"Can't use the file {path}: {e}")
        raise StorageUnavailable(f"Can't open the file: {path}") from e
    finally:
        if handle:
            handle.close()


def read_file_lines(path: PathLike) -> List[str]:
    """Return the non-empty lines of a data file, without terminators."""
    with open_data_file(path, "r") as handle:
        return [line.rstrip("\n") for line in handle if line.rstrip("\n")]


def write_file_lines(path: PathLike, lines: Iterable[str], append: bool = False) -> None:
    """Write records to a data file, one per line.

    With ``append`` the lines are added to the end of the file. Otherwise
    the whole file is replaced: the records go to a sibling temp file
    which is then renamed over the original.
    """
    path = Path(path)
    if append:
        with open_data_file(path, "a") as handle:
            handle.writelines(f"{line}\n" for line in lines)
        return

    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open_data_file(tmp_path, "w") as handle:
            handle.writelines(f"{line}\n" for line in lines)
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Can't replace the file {path}: {e}")
        _discard(tmp_path)
        raise StorageUnavailable(f"Can't open the file: {path}") from e
    except StorageUnavailable:
        _discard(tmp_path)
        raise


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Can't remove temporary file {path}: {e}")


def ensure_writable_dir(path: PathLike) -> Path:
    """Create the data directory if needed and check it can be written."""
    directory = Path(path)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Can't create data directory {directory}: {e}")
        raise StorageUnavailable(f"Can't create data directory: {directory}") from e
    if not os.access(directory, os.W_OK):
        raise StorageUnavailable(f"Data directory is not writable: {directory}")
    return directory
