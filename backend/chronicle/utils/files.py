# backend/chronicle/utils/files.py
import os
import shutil
from pathlib import Path
from uuid import uuid4

from .logging import storage_logger


def fsync_directory(directory: Path) -> None:
    """Flush a directory entry so a rename inside it survives a crash"""
    # Directories cannot be opened for fsync on Windows
    if os.name == "nt":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def write_durable(path: Path, content: bytes) -> Path:
    """Write bytes to path atomically; the data is on disk when this returns"""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.{uuid4().hex}.tmp")
    try:
        with tmp_path.open("wb") as buffer:
            buffer.write(content)
            buffer.flush()
            os.fsync(buffer.fileno())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    fsync_directory(path.parent)
    return path


def atomic_write_text(path: Path, data: str) -> None:
    """Atomically replace the text content of path"""
    write_durable(path, data.encode("utf-8"))


def delete_file(file_path: Path) -> bool:
    """Delete a file if it exists; returns whether something was removed"""
    try:
        file_path.unlink()
    except FileNotFoundError:
        return False
    return True


def remove_tree(directory: Path) -> bool:
    """Remove a directory tree, logging instead of raising on failure"""
    if not directory.exists():
        return True
    try:
        shutil.rmtree(directory)
        return True
    except OSError as e:
        storage_logger.error(f"Error removing directory {directory}: {e}", extra={
            "directory": str(directory)
        })
        return False
