"""Blob storage for uploaded and fetched images, served via signed URLs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Protocol

from azure.core.exceptions import AzureError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from exterra.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """Store ``data`` under ``key`` and return a signed URL.

        Raises PersistenceError when the blob cannot be written.
        """
        ...


class AzureBlobStore:
    """Azure Blob Storage container with read-only SAS links.

    The service client must carry an account key (connection strings with
    ``AccountKey=`` do); the key signs every returned URL.
    """

    def __init__(
        self,
        service: BlobServiceClient,
        container: str,
        ttl_seconds: int = 7 * 24 * 3600,
    ) -> None:
        account_key = getattr(service.credential, "account_key", None)
        if not account_key:
            msg = "BlobServiceClient was not initialized with an account key"
            raise ValueError(msg)
        self._service = service
        self._account_key: str = account_key
        self._container = container
        self._ttl_seconds = ttl_seconds

    @classmethod
    def from_connection_string(
        cls, connection_string: str, container: str, ttl_seconds: int = 7 * 24 * 3600
    ) -> AzureBlobStore:
        return cls(
            BlobServiceClient.from_connection_string(connection_string),
            container,
            ttl_seconds=ttl_seconds,
        )

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        blob_client = self._service.get_blob_client(container=self._container, blob=key)
        try:
            blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as exc:
            msg = f"Failed to store blob '{key}': {exc}"
            raise PersistenceError(msg) from exc
        logger.info("Stored blob %s (%d bytes, %s)", key, len(data), content_type)
        return self.signed_url(key)

    def signed_url(self, key: str, now: datetime | None = None) -> str:
        expiry = (now or datetime.now(UTC)) + timedelta(seconds=self._ttl_seconds)
        sas_token = generate_blob_sas(
            account_name=self._service.account_name,
            container_name=self._container,
            blob_name=key,
            account_key=self._account_key,
            permission=BlobSasPermissions(read=True),
            expiry=expiry,
        )
        blob_client = self._service.get_blob_client(container=self._container, blob=key)
        return f"{blob_client.url}?{sas_token}"
