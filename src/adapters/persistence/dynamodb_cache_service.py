from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from src.adapters.aws import dynamodb_client
from src.app.ports.output import ICacheService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DynamoDbCacheService(ICacheService):
    """Key/value cache in DynamoDB.

    Items carry an `expires_at` epoch-seconds attribute (usable as the table's
    TTL attribute); reads ignore expired items since DynamoDB deletes them
    lazily.

    Env vars:
      - ROUTE_CACHE_TABLE (default: tripgraph-cache)
      - ENDPOINT_URL (preferred for LocalStack)
      - AWS_REGION
    """

    table_name: str | None = None

    def _table(self) -> str:
        return self.table_name or os.getenv("ROUTE_CACHE_TABLE") or "tripgraph-cache"

    def get(self, key: str) -> Any | None:
        ddb = dynamodb_client()
        try:
            resp = ddb.get_item(
                TableName=self._table(),
                Key={"cache_key": {"S": key}},
                ConsistentRead=True,
            )
        except (BotoCoreError, ClientError):
            logger.exception("Cache read failed for %s", key)
            raise
        item = resp.get("Item")
        if not item:
            return None

        expires_at = int(item.get("expires_at", {}).get("N", "0"))
        if expires_at and expires_at <= int(time.time()):
            return None
        raw = item.get("value", {}).get("S")
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = int(time.time())
        ddb = dynamodb_client()
        try:
            ddb.put_item(
                TableName=self._table(),
                Item={
                    "cache_key": {"S": key},
                    "value": {"S": json.dumps(value, separators=(",", ":"))},
                    "created_at": {"N": str(now)},
                    "expires_at": {"N": str(now + int(ttl_seconds))},
                },
            )
        except (BotoCoreError, ClientError):
            logger.exception("Cache write failed for %s", key)
            raise
        logger.debug("Cached %s for %ss", key, ttl_seconds)
