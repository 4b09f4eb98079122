"""
Synonym seeding for query-time expansion.

Rules are upserted by id, so seeding twice leaves one rule per id.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml
from pydantic import ValidationError

from ..schema.synonym import SynonymRule
from .engine_client import SearchEngineClient
from .exceptions import ConfigurationException, EngineException, SynonymError

logger = logging.getLogger(__name__)


DEFAULT_SYNONYMS: List[SynonymRule] = [
    SynonymRule(id="cars", synonyms=["car", "vehicle", "automobile", "سيارة", "سيارات"]),
    SynonymRule(id="phones", synonyms=["phone", "mobile", "smartphone", "جوال", "هاتف"]),
    SynonymRule(id="apartments", synonyms=["apartment", "flat", "شقة", "شقق"]),
    SynonymRule(id="for-sale", root="for sale", synonyms=["selling", "للبيع"]),
]


def load_synonym_rules(path: Union[str, Path]) -> List[SynonymRule]:
    """
    Load synonym rules from a YAML or JSON file.

    The file holds either a list of rules or a mapping with a ``synonyms``
    list. Each rule has ``id``, ``synonyms`` and an optional ``root``.

    Raises:
        ConfigurationException: If the file cannot be read or a rule is invalid
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or []
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationException(f"Failed to load synonyms from {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("synonyms", [])
    if not isinstance(data, list):
        raise ConfigurationException(f"Synonyms file {path} must contain a list of rules")

    try:
        return [SynonymRule.model_validate(item) for item in data]
    except ValidationError as e:
        raise ConfigurationException(f"Invalid synonym rule in {path}: {e}") from e


class SynonymSeeder:
    """
    Registers synonym rules against the collection.
    """

    def __init__(self, client: SearchEngineClient, rules: Optional[Sequence[SynonymRule]] = None):
        self.client = client
        self.rules = list(rules) if rules is not None else list(DEFAULT_SYNONYMS)

    async def seed(self, rules: Optional[Sequence[SynonymRule]] = None) -> List[Dict[str, Any]]:
        """
        Upsert every rule, then list what the collection holds.

        Returns:
            All synonym rules registered on the collection

        Raises:
            SynonymError: If an upsert or the final listing fails
        """
        rules = list(rules) if rules is not None else self.rules

        _check_unique_ids(rules)

        for rule in rules:
            try:
                await self.client.upsert_synonym(rule.id, rule.to_engine_payload())
            except EngineException as e:
                raise SynonymError(f"failed to upsert: {e}", synonym_id=rule.id) from e
            logger.info(f"Upserted synonym rule '{rule.id}' ({len(rule.synonyms)} terms)")

        registered = await self.list_rules()
        for item in registered:
            logger.info(f"Synonym '{item.get('id')}': root={item.get('root') or '-'} terms={item.get('synonyms')}")

        return registered

    async def list_rules(self) -> List[Dict[str, Any]]:
        try:
            return await self.client.retrieve_synonyms()
        except EngineException as e:
            raise SynonymError(f"failed to list synonyms: {e}") from e

    async def delete(self, rule_id: str) -> None:
        try:
            await self.client.delete_synonym(rule_id)
        except EngineException as e:
            raise SynonymError(f"failed to delete: {e}", synonym_id=rule_id) from e
        logger.info(f"Deleted synonym rule '{rule_id}'")


def _check_unique_ids(rules: Sequence[SynonymRule]) -> None:
    seen: set[str] = set()
    for rule in rules:
        if rule.id in seen:
            raise SynonymError("duplicate rule id in seed set", synonym_id=rule.id)
        seen.add(rule.id)
