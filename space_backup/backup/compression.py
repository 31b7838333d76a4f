"""
Compression handlers for backup archives.

The export is a single JSON file; it is stored as the only entry of a
deflated zip archive named after the same timestamp.
"""

import os
import zipfile
from pathlib import Path


class CompressionError(Exception):
    """Raised when archive creation fails."""
    pass


def create_archive(source_path: str, archive_path: str) -> str:
    """
    Create a single-entry zip archive from a file.

    Args:
        source_path: File to compress
        archive_path: Path of the zip archive to write

    Returns:
        Path to the created archive file

    Raises:
        CompressionError: If archive creation fails
    """
    source = Path(source_path)

    if not source.is_file():
        raise CompressionError(f"Source file not found: {source_path}")

    try:
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            # Store by basename, no directory structure inside the archive
            zipf.write(source, source.name)
        return archive_path
    except Exception as e:
        # Clean up partial archive on failure
        if os.path.exists(archive_path):
            try:
                os.remove(archive_path)
            except OSError:
                pass
        raise CompressionError(f"Failed to create archive: {e}")


def read_and_remove(archive_path: str) -> bytes:
    """
    Read an archive fully into memory and delete it from disk.

    The file is removed whether or not the read succeeds, so repeated
    invocations on a reused environment never accumulate archives.

    Args:
        archive_path: Path to the archive file

    Returns:
        Archive contents

    Raises:
        CompressionError: If the archive cannot be read
    """
    try:
        with open(archive_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise CompressionError(f"Failed to read archive {archive_path}: {e}")
    finally:
        try:
            os.remove(archive_path)
        except FileNotFoundError:
            pass


def get_archive_size(archive_path: str) -> int:
    """
    Get the size of an archive file in bytes.

    Args:
        archive_path: Path to the archive file

    Returns:
        File size in bytes

    Raises:
        CompressionError: If file doesn't exist or cannot be accessed
    """
    try:
        return os.path.getsize(archive_path)
    except FileNotFoundError:
        raise CompressionError(f"Archive not found: {archive_path}")
    except Exception as e:
        raise CompressionError(f"Failed to get archive size: {e}")
