"""
Bulk importer for pushing normalized documents into the collection.

Documents are sent in batches with the create action. Each batch call is
retried with a linear backoff; once every batch is in, the importer waits
for indexing to settle and reads back the collection's document count.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from .config import ImportConfig
from .document_loader import AdDocument
from .engine_client import SearchEngineClient
from .exceptions import DocumentImportError, EngineException, VerificationError
from .retry import IMPORT_RETRY_CONFIG, RetryConfig, RetryError, SleepFunc, retry_with_config

logger = logging.getLogger(__name__)

IMPORT_ACTION = "create"


@dataclass
class ImportReport:
    """Result of a bulk import."""

    batches: int = 0
    attempts: int = 0
    succeeded: int = 0
    failed: int = 0
    num_documents: Optional[int] = None
    verification_error: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.num_documents is not None and self.verification_error is None


def chunked(documents: Sequence[AdDocument], size: int) -> Iterator[List[AdDocument]]:
    """Split documents into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError("batch size must be at least 1")
    for start in range(0, len(documents), size):
        yield list(documents[start : start + size])


class BulkImporter:
    """
    Imports documents in batches with bounded retries.
    """

    def __init__(
        self,
        client: SearchEngineClient,
        config: Optional[ImportConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.config = config or ImportConfig()
        self.sleep = sleep
        self.retry_config = (
            IMPORT_RETRY_CONFIG
            if config is None
            else RetryConfig(max_attempts=self.config.max_attempts, base_delay=self.config.base_delay)
        )

    async def import_documents(
        self, documents: Sequence[AdDocument], batch_size: Optional[int] = None
    ) -> ImportReport:
        """
        Import every document, then verify the collection count.

        Args:
            documents: Normalized documents
            batch_size: Documents per import call (defaults to config)

        Returns:
            ImportReport with per-document counts and the verified total

        Raises:
            DocumentImportError: If a batch fails on every attempt
        """
        size = batch_size or self.config.batch_size
        report = ImportReport()

        logger.info(f"Importing {len(documents)} documents in batches of {size}")

        for index, batch in enumerate(chunked(documents, size)):
            results, attempts = await self._import_batch(index, batch, size)
            report.batches += 1
            report.attempts += attempts

            for result in results:
                if result.get("success"):
                    report.succeeded += 1
                else:
                    report.failed += 1
                    logger.error(f"Document import failed in batch {index}: {result.get('error')}")

        logger.info(f"Import finished: {report.succeeded} succeeded, {report.failed} failed")

        if self.config.settle_seconds > 0:
            await self.sleep(self.config.settle_seconds)

        try:
            report.num_documents = await self.verify()
        except VerificationError as e:
            report.verification_error = str(e)
            logger.error(f"Import verification failed: {e}")

        return report

    async def _import_batch(
        self, index: int, batch: List[AdDocument], size: int
    ) -> Tuple[List[Dict[str, Any]], int]:
        payload = [doc.to_engine_document() for doc in batch]
        retry_delays: List[float] = []

        async def send_batch():
            return await self.client.import_documents(payload, action=IMPORT_ACTION, batch_size=size)

        async def record_retry(attempt: int, error: Exception, delay: float) -> None:
            retry_delays.append(delay)

        send_batch.__name__ = f"import_batch_{index}"

        try:
            results = await retry_with_config(
                send_batch, self.retry_config, exceptions=(EngineException,), on_retry=record_retry, sleep=self.sleep
            )
        except RetryError as e:
            raise DocumentImportError(e.attempts, index, e.last_exception) from e.last_exception

        return results, len(retry_delays) + 1

    async def verify(self) -> int:
        """Read back the number of documents in the collection."""
        try:
            info = await self.client.retrieve_collection()
        except EngineException as e:
            raise VerificationError(f"failed to get document count: {e}") from e

        count = info.get("num_documents")
        if not isinstance(count, int):
            raise VerificationError(f"collection info has no document count: {info}")

        logger.info(f"Number of documents in collection '{self.client.collection_name}': {count}")
        return count
