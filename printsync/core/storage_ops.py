"""
Storage helpers: public URLs in Supabase Storage and local staging of
downloaded content.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from typing import AsyncIterator

from supabase import Client

from printsync.config import logger


def generate_public_url(client: Client, bucket: str, path: str) -> str:
    """
    Generate a public URL for a file in Supabase Storage.

    Args:
        client: Supabase client
        bucket: Storage bucket name
        path: Path to the file inside the bucket (e.g., 'renders/sunset.png')

    Returns:
        str: Public URL to access the file
    """
    try:
        public_url = client.storage.from_(bucket).get_public_url(path)
        # Some client versions append an empty query string
        public_url = public_url.rstrip("?")

        logger.debug(f"Generated public URL for path: {path}")
        return public_url

    except Exception as e:
        logger.error(f"Error generating public URL for path {path}: {e}")
        raise


def _write_staged(staging_dir: str, data: bytes, suffix: str) -> str:
    os.makedirs(staging_dir, exist_ok=True)
    fd, path = tempfile.mkstemp(dir=staging_dir, suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
    except BaseException:
        os.remove(path)
        raise
    return path


def _remove_staged(path: str) -> None:
    try:
        os.remove(path)
        logger.debug(f"Removed staged file {path}")
    except FileNotFoundError:
        pass


@asynccontextmanager
async def staged_file(
    staging_dir: str, data: bytes, filename: str
) -> AsyncIterator[str]:
    """
    Write bytes to a temporary file under ``staging_dir`` and yield its path.

    Disk work runs in a worker thread. The file is removed when the block
    exits, whether or not it raised.
    """
    suffix = os.path.splitext(filename)[1]
    path = await asyncio.to_thread(_write_staged, staging_dir, data, suffix)
    logger.debug(f"Staged {len(data)} bytes at {path}")
    try:
        yield path
    finally:
        await asyncio.to_thread(_remove_staged, path)
