"""S3 client factory for inspection files (AWS or any S3-compatible endpoint)."""

from __future__ import annotations

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from fieldops.core.config import settings


ADDRESSING_STYLES = {"path", "virtual"}


def _client_config() -> Config | None:
    style = settings.S3_URL_STYLE.strip().lower()
    if style in ADDRESSING_STYLES:
        return Config(s3={"addressing_style": style})
    return None


def get_s3_client() -> BaseClient:
    """Client for the configured bucket; empty credentials fall back to the boto3 chain."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        endpoint_url=settings.S3_ENDPOINT_URL.rstrip("/") or None,
        config=_client_config(),
    )
