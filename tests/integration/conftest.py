from __future__ import annotations

import os
from typing import Iterator
from uuid import uuid4

import httpx
import pytest

from src.adapters.aws import dynamodb_client, s3_client

LOCALSTACK_DEFAULT = "http://localhost:4566"


def _localstack_up(endpoint_url: str) -> bool:
    try:
        resp = httpx.get(endpoint_url.rstrip("/") + "/_localstack/health", timeout=1.5)
    except httpx.HTTPError:
        return False
    return resp.is_success


@pytest.fixture(scope="session", autouse=True)
def localstack_env() -> None:
    """Point boto3 at LocalStack unless the environment already says otherwise."""

    os.environ.setdefault("USE_LOCALSTACK", "true")
    os.environ.setdefault("ENDPOINT_URL", LOCALSTACK_DEFAULT)
    os.environ.setdefault("LOCALSTACK_ENDPOINT_URL", os.environ["ENDPOINT_URL"])
    os.environ.setdefault("AWS_REGION", "eu-west-1")
    # boto3 refuses to sign requests without credentials.
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")


@pytest.fixture(scope="session")
def require_localstack(localstack_env: None) -> str:
    endpoint_url = os.environ.get("ENDPOINT_URL", LOCALSTACK_DEFAULT)
    if _localstack_up(endpoint_url):
        return endpoint_url

    msg = f"LocalStack not reachable at {endpoint_url}"
    # CI starts LocalStack, so a missing one there is a failure.
    if os.getenv("CI") or os.getenv("REQUIRE_LOCALSTACK"):
        pytest.fail(msg, pytrace=False)
    pytest.skip(f"{msg}; skipping integration tests")


@pytest.fixture
def graph_bucket(require_localstack: str, monkeypatch: pytest.MonkeyPatch) -> str:
    bucket = "tripgraph-test-graphs"
    s3 = s3_client()
    try:
        s3.create_bucket(
            Bucket=bucket,
            CreateBucketConfiguration={
                "LocationConstraint": os.environ.get("AWS_REGION", "eu-west-1")
            },
        )
    except s3.exceptions.BucketAlreadyOwnedByYou:
        pass

    monkeypatch.setenv("GRAPH_BUCKET", bucket)
    monkeypatch.setenv("GRAPH_PREFIX", f"graphs-test-{uuid4()}")
    return bucket


@pytest.fixture
def cache_table(require_localstack: str, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    table = "tripgraph-test-cache"
    ddb = dynamodb_client()
    if table not in ddb.list_tables().get("TableNames", []):
        ddb.create_table(
            TableName=table,
            BillingMode="PAY_PER_REQUEST",
            AttributeDefinitions=[{"AttributeName": "cache_key", "AttributeType": "S"}],
            KeySchema=[{"AttributeName": "cache_key", "KeyType": "HASH"}],
        )
        ddb.get_waiter("table_exists").wait(TableName=table)

    monkeypatch.setenv("ROUTE_CACHE_TABLE", table)
    yield table
