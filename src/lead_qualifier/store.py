# store.py
"""Owner-scoped qualification record storage on Azure Blob Storage."""

import json
import uuid
from typing import Any, List, Optional
from urllib.parse import quote

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from .config import config
from .errors import NotFound, Unauthenticated
from .logging_utils import get_logger
from .models import LeadSubmission, QualificationRecord, Verdict

RECORD_PREFIX = "qualifications"


class QualificationStore:
    """Create, list, get and delete qualification records for one owner.

    Each record is one JSON blob at
    ``qualifications/{owner}/{record_id}.json``. The owner id is part of the
    blob path, so every read and delete is scoped to its owner in the same
    operation: a record belonging to someone else simply does not exist
    under the caller's prefix and is reported as NotFound.
    """

    def __init__(
        self,
        account_url: Optional[str] = None,
        container_name: Optional[str] = None,
        credential: Optional[Any] = None,
        container_client: Optional[Any] = None,
    ):
        """Initialize the store.

        Args:
            account_url: Azure Storage account URL. Defaults to config value.
            container_name: Blob container name. Defaults to config value.
            credential: Azure credential. Defaults to the SAS token, or to
                       managed identity / DefaultAzureCredential based on
                       environment.
            container_client: Pre-built ContainerClient (skips client setup).
        """
        self.logger = get_logger(__name__)

        self.account_url = account_url or config.AZURE_STORAGE_ACCOUNT_URL
        self.container_name = container_name or config.AZURE_STORAGE_CONTAINER

        self._credential = credential
        self._blob_service_client: Optional[BlobServiceClient] = None
        self._container_client = container_client
        self._container_ready = False

    def _get_credential(self) -> Any:
        if self._credential is None:
            if config.AZURE_STORAGE_SAS_TOKEN:
                self._credential = config.AZURE_STORAGE_SAS_TOKEN
            else:
                self._credential = config.get_azure_credentials()
        return self._credential

    def _get_blob_service_client(self) -> BlobServiceClient:
        """Get or create the Blob Service client.

        The SDK retry policy is turned off: each store call is a single
        round trip and callers retry at a higher layer if they need to.
        """
        if self._blob_service_client is None:
            account_url = self.account_url or config.require("AZURE_STORAGE_ACCOUNT_URL")
            credential = self._get_credential()
            if isinstance(credential, str) and credential.startswith("?"):
                # SAS token - append to URL
                self._blob_service_client = BlobServiceClient(
                    account_url=f"{account_url}{credential}",
                    retry_total=0,
                )
            else:
                self._blob_service_client = BlobServiceClient(
                    account_url=account_url,
                    credential=credential,
                    retry_total=0,
                )
        return self._blob_service_client

    def _get_container_client(self):
        """Get the container client, creating the container on first use."""
        if self._container_client is None:
            blob_service = self._get_blob_service_client()
            self._container_client = blob_service.get_container_client(
                self.container_name
            )
        if not self._container_ready:
            self._create_container(self._container_client)
            self._container_ready = True
        return self._container_client

    def _create_container(self, container_client) -> None:
        try:
            container_client.create_container()
            self.logger.info(
                "Created blob container",
                extra={"container": self.container_name}
            )
        except ResourceExistsError:
            self.logger.debug(
                "Blob container already exists",
                extra={"container": self.container_name}
            )

    @staticmethod
    def _owner_prefix(owner_id: str) -> str:
        return f"{RECORD_PREFIX}/{quote(owner_id, safe='')}/"

    def _record_path(self, owner_id: str, record_id: str) -> str:
        return f"{self._owner_prefix(owner_id)}{record_id}.json"

    @staticmethod
    def require_owner(owner_id: Optional[str]) -> str:
        if owner_id is None or not str(owner_id).strip():
            raise Unauthenticated("An authenticated owner is required")
        return str(owner_id).strip()

    @staticmethod
    def _is_record_id(record_id: str) -> bool:
        try:
            return str(uuid.UUID(record_id)) == record_id.lower()
        except (ValueError, AttributeError, TypeError):
            return False

    def create(
        self,
        owner_id: str,
        lead: LeadSubmission,
        verdict: Verdict,
        key_need: Optional[str] = None,
    ) -> QualificationRecord:
        """Persist a new qualification record.

        Args:
            owner_id: The authenticated user.
            lead: The qualified lead.
            verdict: Its verdict.
            key_need: Optional precomputed key need.

        Returns:
            The stored record, with its id and created_at assigned.

        Raises:
            Unauthenticated: If no owner id is given.
        """
        owner_id = self.require_owner(owner_id)
        record = QualificationRecord.from_analysis(owner_id, lead, verdict, key_need)
        blob_path = self._record_path(owner_id, record.id)
        content = json.dumps(record.to_row()).encode("utf-8")

        try:
            self._get_container_client().upload_blob(
                blob_path,
                content,
                overwrite=False,
                content_settings=ContentSettings(content_type="application/json"),
            )
        except Exception as e:
            self.logger.error(
                f"Failed to store qualification: {e}",
                extra={"blob_path": blob_path}
            )
            raise

        self.logger.info(
            "Stored qualification",
            extra={"record_id": record.id, "owner_id": owner_id, "score": record.score}
        )
        return record

    def list(self, owner_id: str) -> List[QualificationRecord]:
        """List an owner's records, most recent first.

        Returns an empty list when the owner has no records. Blobs that
        cannot be read as a record are logged and skipped.
        """
        owner_id = self.require_owner(owner_id)
        prefix = self._owner_prefix(owner_id)
        container_client = self._get_container_client()

        try:
            blob_names = [blob.name for blob in container_client.list_blobs(name_starts_with=prefix)]
        except ResourceNotFoundError:
            self.logger.warning(
                "Blob container not found, listing no qualifications",
                extra={"container": self.container_name}
            )
            return []
        except Exception as e:
            self.logger.error(
                f"Failed to list qualifications: {e}",
                extra={"prefix": prefix}
            )
            raise

        records: List[QualificationRecord] = []
        for blob_name in blob_names:
            try:
                record = self._load(blob_name)
            except ResourceNotFoundError:
                # Deleted between listing and download
                continue
            except (KeyError, TypeError, ValueError) as e:
                self.logger.warning(
                    f"Skipping unreadable qualification blob: {e}",
                    extra={"blob_name": blob_name}
                )
                continue
            if record.owner_id == owner_id:
                records.append(record)

        records.sort(key=lambda r: r.created_at, reverse=True)

        self.logger.debug(
            "Listed qualifications",
            extra={"owner_id": owner_id, "count": len(records)}
        )
        return records

    def get(self, owner_id: str, record_id: str) -> QualificationRecord:
        """Fetch one of the owner's records.

        Raises:
            Unauthenticated: If no owner id is given.
            NotFound: If the record is absent or owned by someone else.
        """
        owner_id = self.require_owner(owner_id)
        if not self._is_record_id(record_id):
            raise NotFound(f"Qualification {record_id} not found")

        try:
            record = self._load(self._record_path(owner_id, record_id))
        except ResourceNotFoundError as e:
            raise NotFound(f"Qualification {record_id} not found") from e

        if record.owner_id != owner_id:
            raise NotFound(f"Qualification {record_id} not found")
        return record

    def delete(self, owner_id: str, record_id: str) -> None:
        """Delete one of the owner's records.

        Raises:
            Unauthenticated: If no owner id is given.
            NotFound: If the record is absent or owned by someone else.
        """
        owner_id = self.require_owner(owner_id)
        if not self._is_record_id(record_id):
            raise NotFound(f"Qualification {record_id} not found")

        blob_path = self._record_path(owner_id, record_id)
        try:
            self._get_container_client().delete_blob(blob_path)
        except ResourceNotFoundError as e:
            self.logger.debug(
                "Qualification not found for deletion",
                extra={"blob_path": blob_path}
            )
            raise NotFound(f"Qualification {record_id} not found") from e

        self.logger.info(
            "Deleted qualification",
            extra={"record_id": record_id, "owner_id": owner_id}
        )

    def _load(self, blob_path: str) -> QualificationRecord:
        content = self._get_container_client().download_blob(blob_path).readall()
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        return QualificationRecord.from_row(json.loads(content))
