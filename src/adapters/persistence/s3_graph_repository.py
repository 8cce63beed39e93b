from __future__ import annotations

import logging
import os
import pickle
import threading
import time
from dataclasses import dataclass, field

from botocore.exceptions import ClientError

from src.adapters.aws import s3_client
from src.app.ports.output import IGraphRepository
from src.domain.algorithms.graph_conversion import (
    snapshot_from_networkx,
    snapshot_to_networkx,
)
from src.domain.models import GraphSnapshot

logger = logging.getLogger(__name__)

POINTER_NAME = "CURRENT"


@dataclass(slots=True)
class S3GraphRepository(IGraphRepository):
    """Graph repository backed by S3.

    Each version is a pickled networkx MultiDiGraph at `{prefix}/{version}.pkl`;
    `{prefix}/CURRENT` holds the current version string. Loaded versions are
    cached in-process and the pointer is re-read at most every
    `refresh_interval_s` seconds.

    Env vars:
      - GRAPH_BUCKET: bucket name (required)
      - GRAPH_PREFIX: key prefix (default: graphs)
      - GRAPH_REFRESH_S: pointer refresh interval (default: 30)
      - ENDPOINT_URL: preferred LocalStack endpoint (e.g. http://localhost:4566)
      - AWS_REGION: defaults to eu-west-1

    Notes:
      - pickle loading is only safe for trusted inputs.
    """

    bucket: str | None = None
    prefix: str | None = None
    refresh_interval_s: float | None = None

    _snapshots: dict[str, GraphSnapshot] = field(default_factory=dict, init=False, repr=False)
    _current_version: str | None = field(default=None, init=False)
    _checked_at: float = field(default=float("-inf"), init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def _bucket(self) -> str:
        value = self.bucket or os.getenv("GRAPH_BUCKET")
        if not value:
            raise RuntimeError("Missing GRAPH_BUCKET")
        return value

    def _prefix(self) -> str:
        return (self.prefix or os.getenv("GRAPH_PREFIX") or "graphs").strip("/")

    def _refresh_interval(self) -> float:
        if self.refresh_interval_s is not None:
            return self.refresh_interval_s
        return float(os.getenv("GRAPH_REFRESH_S", "30"))

    def _pointer_key(self) -> str:
        return f"{self._prefix()}/{POINTER_NAME}"

    def _version_key(self, version: str) -> str:
        return f"{self._prefix()}/{version}.pkl"

    def snapshot(self) -> GraphSnapshot | None:
        version = self._resolve_version()
        if version is None:
            return None
        cached = self._snapshots.get(version)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._snapshots.get(version)
            if cached is not None:
                return cached
            obj = s3_client().get_object(Bucket=self._bucket(), Key=self._version_key(version))
            graph = pickle.loads(obj["Body"].read())
            snapshot = snapshot_from_networkx(graph, version=version)
            # Older versions are no longer reachable through the pointer.
            self._snapshots = {version: snapshot}
            logger.info("Loaded graph %s from s3://%s", version, self._bucket())
            return snapshot

    def publish(self, snapshot: GraphSnapshot) -> None:
        s3 = s3_client()
        bucket = self._bucket()
        payload = pickle.dumps(snapshot_to_networkx(snapshot))
        # Body first, pointer second: readers never see a dangling version.
        s3.put_object(Bucket=bucket, Key=self._version_key(snapshot.version), Body=payload)
        s3.put_object(
            Bucket=bucket,
            Key=self._pointer_key(),
            Body=snapshot.version.encode("utf-8"),
            ContentType="text/plain",
        )
        with self._lock:
            self._snapshots = {snapshot.version: snapshot}
            self._current_version = snapshot.version
            self._checked_at = time.monotonic()
        logger.info("Published graph %s to s3://%s/%s", snapshot.version, bucket, self._prefix())

    def _resolve_version(self) -> str | None:
        now = time.monotonic()
        if now - self._checked_at < self._refresh_interval():
            return self._current_version

        try:
            obj = s3_client().get_object(Bucket=self._bucket(), Key=self._pointer_key())
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code not in {"NoSuchKey", "404"}:
                raise
            version = None
        else:
            version = obj["Body"].read().decode("utf-8").strip() or None

        self._current_version = version
        self._checked_at = now
        return version
