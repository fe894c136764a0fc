"""
Record store operations for the Supabase image index table.
Selects the oldest unprocessed record and flips its processed flag.
"""

import asyncio
from typing import Any, Callable, Iterable, Optional, TypeVar

from supabase import Client

from printsync.config import logger
from printsync.core import storage_ops
from printsync.errors import StoreError
from printsync.models import Record

T = TypeVar("T")


class RecordStore:
    """Thin client over the source table that owns the processed flag."""

    def __init__(
        self,
        client: Client,
        *,
        table: str = "image_index",
        processed_column: str = "printify_uploaded",
        bucket: str = "generated-images",
        timeout: float = 30.0,
    ):
        self._client = client
        self.table = table
        self.processed_column = processed_column
        self.bucket = bucket
        self.timeout = timeout

    async def _run(self, operation: str, func: Callable[[], T]) -> T:
        """Run a blocking Supabase call in a worker thread with a timeout."""
        try:
            return await asyncio.wait_for(asyncio.to_thread(func), self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Supabase {operation} timed out after {self.timeout}s")
            raise StoreError(f"{operation} timed out after {self.timeout}s") from e
        except StoreError:
            raise
        except Exception as e:
            logger.error(f"Supabase {operation} failed: {e}")
            raise StoreError(f"{operation} failed: {e}") from e

    async def next_unprocessed(self, exclude: Iterable[Any] = ()) -> Optional[Record]:
        """
        Return the oldest record whose processed flag is false.

        Args:
            exclude: Record ids to skip (quarantined records)

        Returns:
            Record, or None when every record is processed

        Raises:
            StoreError: If the query fails
        """
        excluded = list(exclude)
        column = self.processed_column

        def query():
            builder = (
                self._client.table(self.table)
                .select(f"id, path, created_at, {column}")
                .eq(column, False)
            )
            if excluded:
                builder = builder.not_.in_("id", excluded)
            return (
                builder.order("created_at", desc=False)
                .order("id", desc=False)
                .limit(1)
                .execute()
            )

        response = await self._run("select next unprocessed", query)

        if not response.data:
            logger.debug(f"No unprocessed rows in {self.table}")
            return None

        row = response.data[0]
        return Record(
            id=row["id"],
            path=row["path"],
            created_at=row.get("created_at"),
            processed=bool(row.get(column, False)),
        )

    async def mark_processed(self, record_id: Any) -> None:
        """
        Set the processed flag of a record. Marking an already processed
        record again succeeds.

        Raises:
            StoreError: If the update fails or the record does not exist
        """
        column = self.processed_column

        def update():
            return (
                self._client.table(self.table)
                .update({column: True})
                .eq("id", record_id)
                .execute()
            )

        response = await self._run(f"mark record {record_id} processed", update)

        if not response.data:
            error_msg = f"Failed to mark record {record_id} processed: No data returned"
            logger.error(error_msg)
            raise StoreError(error_msg)

        logger.info(f"Marked record {record_id} as processed")

    def public_url(self, path: str) -> str:
        return storage_ops.generate_public_url(self._client, self.bucket, path)
