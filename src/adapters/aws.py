from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import boto3
from botocore.client import BaseClient
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_dynamodb import DynamoDBClient
    from mypy_boto3_s3 import S3Client
else:
    DynamoDBClient = BaseClient  # type: ignore[misc,assignment]
    S3Client = BaseClient  # type: ignore[misc,assignment]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True, slots=True)
class AwsRuntimeConfig:
    """boto3 settings resolved from the environment.

    Env vars:
      - AWS_REGION: defaults to eu-west-1
      - ENDPOINT_URL: explicit endpoint override (preferred for LocalStack)
      - USE_LOCALSTACK / LOCALSTACK_ENDPOINT_URL: legacy LocalStack toggle
      - AWS_CONNECT_TIMEOUT_S / AWS_READ_TIMEOUT_S: client timeouts (default 5 / 10)
    """

    use_localstack: bool
    region: str
    endpoint_url: str | None
    connect_timeout_s: float = 5.0
    read_timeout_s: float = 10.0

    @staticmethod
    def from_env() -> "AwsRuntimeConfig":
        endpoint_url = os.getenv("ENDPOINT_URL")
        if endpoint_url is not None:
            endpoint_url = endpoint_url.strip() or None

        return AwsRuntimeConfig(
            use_localstack=_env_bool("USE_LOCALSTACK", False),
            region=os.getenv("AWS_REGION", "eu-west-1"),
            endpoint_url=endpoint_url,
            connect_timeout_s=_env_float("AWS_CONNECT_TIMEOUT_S", 5.0),
            read_timeout_s=_env_float("AWS_READ_TIMEOUT_S", 10.0),
        )

    def resolved_endpoint_url(self) -> str | None:
        """Return the endpoint URL to use for boto3.

        Priority:
          1) ENDPOINT_URL (explicit override; preferred for LocalStack)
          2) LOCALSTACK_ENDPOINT_URL if USE_LOCALSTACK is enabled (legacy)
          3) None (AWS real)
        """

        if self.endpoint_url:
            return self.endpoint_url
        if self.use_localstack:
            return os.getenv("LOCALSTACK_ENDPOINT_URL", "http://localhost:4566")
        return None

    def client_config(self) -> Config:
        return Config(
            connect_timeout=self.connect_timeout_s,
            read_timeout=self.read_timeout_s,
            retries={"max_attempts": 3, "mode": "standard"},
        )


def boto3_client(service: str) -> BaseClient:
    cfg = AwsRuntimeConfig.from_env()
    session = boto3.session.Session(region_name=cfg.region)
    return cast(
        BaseClient,
        cast(Any, session).client(
            service,
            endpoint_url=cfg.resolved_endpoint_url(),
            config=cfg.client_config(),
        ),
    )


def s3_client() -> S3Client:
    return cast(S3Client, boto3_client("s3"))


def dynamodb_client() -> DynamoDBClient:
    return cast(DynamoDBClient, boto3_client("dynamodb"))
