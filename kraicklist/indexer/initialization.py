"""
Indexer provisioning routine.

Runs once at startup, sequentially: reset the collection, load and normalize
the bulk source, import with retries, verify, then seed synonyms. Any
unresolved failure is fatal and re-raised so the process does not start.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..schema.synonym import SynonymRule
from ..utils.logging import get_logger, log_provision_event
from .bulk_importer import BulkImporter, ImportReport
from .collection_schema import SchemaProvisioner
from .config import Settings
from .document_loader import load_documents
from .engine_client import SearchEngineClient
from .retry import SleepFunc
from .synonyms import DEFAULT_SYNONYMS, SynonymSeeder, load_synonym_rules

logger = logging.getLogger(__name__)


class ProvisioningState(str, Enum):
    NOT_STARTED = "not_started"
    SCHEMA_RESET = "schema_reset"
    SCHEMA_CREATED = "schema_created"
    IMPORTING = "importing"
    VERIFIED = "verified"
    # Import succeeded but the document count could not be read back
    UNVERIFIED = "unverified"
    FAILED = "failed"


@dataclass
class ProvisioningResult:
    state: ProvisioningState
    documents_loaded: int = 0
    lines_skipped: int = 0
    import_report: Optional[ImportReport] = None
    synonyms: List[Dict[str, Any]] = field(default_factory=list)


def synonym_rules_from_settings(settings: Settings) -> List[SynonymRule]:
    """Load rules from the configured file, falling back to the built-in set."""
    if settings.synonyms_file:
        return load_synonym_rules(settings.synonyms_file)
    return list(DEFAULT_SYNONYMS)


class ProvisioningPipeline:
    """
    Startup provisioning for the ads collection.
    """

    def __init__(
        self,
        client: SearchEngineClient,
        settings: Settings,
        synonym_rules: Optional[Sequence[SynonymRule]] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.client = client
        self.settings = settings
        self.schema = SchemaProvisioner(
            client, embedding_model=settings.embedding_model, embedding_fields=settings.embedding_fields
        )
        self.importer = BulkImporter(client, settings.to_import_config(), sleep=sleep)
        self.seeder = SynonymSeeder(
            client, synonym_rules if synonym_rules is not None else synonym_rules_from_settings(settings)
        )
        self.state = ProvisioningState.NOT_STARTED
        self.events = get_logger(__name__).bind(collection=client.collection_name)

    def _transition(self, state: ProvisioningState, **kwargs: Any) -> None:
        self.state = state
        log_provision_event(self.events, f"provision_{state.value}", **kwargs)

    async def run(self) -> ProvisioningResult:
        """
        Run the full provisioning sequence.

        Raises:
            SchemaError, DocumentSourceError, MissingIdentifierError,
            DocumentParseError, DocumentImportError, SynonymError
        """
        result = ProvisioningResult(state=self.state)

        try:
            dropped = await self.schema.try_drop_collection()
            self._transition(ProvisioningState.SCHEMA_RESET, dropped=dropped)

            await self.schema.create_collection()
            self._transition(ProvisioningState.SCHEMA_CREATED, fields=len(self.schema.schema["fields"]))

            loaded = load_documents(
                self.settings.data_file,
                strict_ids=self.settings.strict_ids,
                strict_parse=self.settings.strict_parse,
            )
            result.documents_loaded = loaded.count
            result.lines_skipped = loaded.skipped

            self._transition(ProvisioningState.IMPORTING, documents=loaded.count, skipped=loaded.skipped)
            report = await self.importer.import_documents(loaded.documents)
            result.import_report = report

            if report.verified:
                self._transition(
                    ProvisioningState.VERIFIED, num_documents=report.num_documents, attempts=report.attempts
                )
            else:
                self._transition(ProvisioningState.UNVERIFIED, error=report.verification_error)

            result.synonyms = await self.seeder.seed()
            log_provision_event(self.events, "synonyms_seeded", count=len(result.synonyms))

        except Exception as e:
            failed_in = self.state.value
            self.state = ProvisioningState.FAILED
            log_provision_event(self.events, "provision_failed", stage=failed_in, error=str(e))
            raise

        result.state = self.state
        return result


async def provision(
    client: SearchEngineClient, settings: Settings, sleep: SleepFunc = asyncio.sleep
) -> ProvisioningResult:
    """Run startup provisioning with the given client and settings."""
    logger.info(f"Provisioning collection '{client.collection_name}' from {settings.data_file}")
    return await ProvisioningPipeline(client, settings, sleep=sleep).run()
