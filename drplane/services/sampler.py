# drplane/services/sampler.py
"""
Cross-region table comparison

Counts come from describe_table (approximate, refreshed by DynamoDB roughly
every six hours), which keeps the check cheap. A small sample of primary
items is then looked up in the secondary to surface anecdotal mismatches.
"""

import logging
from typing import List

from drplane.core.aws import AwsClientFactory, call_blocking
from drplane.core.exceptions import BackendUnavailable
from drplane.services.models import TableValidationResult

logger = logging.getLogger(__name__)


class TableConsistencySampler:
    """Compare one table between a primary and a secondary region"""

    def __init__(
        self,
        clients: AwsClientFactory,
        primary: str,
        secondary: str,
        sample_size: int = 10,
        key_attribute: str = "id",
    ):
        self.primary = primary
        self.secondary = secondary
        self.primary_db = clients.dynamodb(primary)
        self.secondary_db = clients.dynamodb(secondary)
        self.sample_size = sample_size
        self.key_attribute = key_attribute

    async def get_item_count(self, client, region: str, table: str) -> int:
        try:
            response = await call_blocking(client.describe_table, TableName=table)
        except Exception as e:
            raise BackendUnavailable("dynamodb", region, table, str(e)) from e

        return int(response.get("Table", {}).get("ItemCount", 0) or 0)

    async def sample(self, table: str) -> TableValidationResult:
        logger.info(f"Validating table: {table}", extra={"table": table})

        primary_count = await self.get_item_count(self.primary_db, self.primary, table)
        secondary_count = await self.get_item_count(self.secondary_db, self.secondary, table)

        mismatches = await self.sample_mismatches(table)

        return TableValidationResult(
            table=table,
            primary_count=primary_count,
            secondary_count=secondary_count,
            sampled_mismatches=tuple(mismatches),
        )

    def _item_key(self, item):
        """Typed key attribute of a scanned item, or None when it has no S/N key"""
        attribute = item.get(self.key_attribute) or {}
        for type_tag in ("S", "N"):
            if attribute.get(type_tag):
                return {type_tag: attribute[type_tag]}
        return None

    async def sample_mismatches(self, table: str) -> List[str]:
        """Best-effort existence check of a few primary items in the secondary"""
        try:
            response = await call_blocking(self.primary_db.scan, TableName=table, Limit=self.sample_size)
        except Exception as e:
            logger.warning(f"Sample scan failed: {e}", extra={"table": table, "region": self.primary})
            return []

        mismatches = []
        for item in response.get("Items", [])[: self.sample_size]:
            key = self._item_key(item)
            if key is None:
                logger.debug(
                    f"Skipping sampled item without a string or number {self.key_attribute}",
                    extra={"table": table},
                )
                continue
            key_value = next(iter(key.values()))

            try:
                found = await call_blocking(
                    self.secondary_db.get_item,
                    TableName=table,
                    Key={self.key_attribute: key},
                )
            except Exception as e:
                logger.warning(
                    f"Error checking item {key_value} in DR: {e}",
                    extra={"table": table, "region": self.secondary},
                )
                mismatches.append(f"Item {key_value} could not be verified in DR")
                continue

            if not found.get("Item"):
                mismatches.append(f"Item {key_value} not found in DR")

        return mismatches
