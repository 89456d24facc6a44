"""
Certificate Store Module
Loads the static certificate dataset (JSON document or CSV export) once and
exposes it read-only for the lifetime of the service
"""

import csv
import io
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from app.config import is_url
from app.errors import LoadError

logger = logging.getLogger(__name__)

ID_KEYS = ("certificateId", "Certificate ID", "Certificate_Id")
NAME_KEYS = ("name", "Full Name", "Student Name", "Participant Name")


@dataclass(frozen=True)
class CertificateRecord:
    """A single issued certificate"""

    certificate_id: str
    name: str
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["certificateId"] = self.certificate_id
        data["name"] = self.name
        return data


class CertificateStore:
    """Load and hold the certificate dataset"""

    def __init__(self, source: str, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the store

        Args:
            source: Filesystem path (.json or .csv) or http(s) URL of the dataset
            client: Optional HTTP client used for URL sources
        """
        self.source = source
        self._client = client
        self._records: Optional[Tuple[CertificateRecord, ...]] = None
        self._document: Optional[Dict[str, Any]] = None
        self.load_error: Optional[str] = None

    @staticmethod
    def _normalize_key(key: str) -> str:
        return "".join(ch for ch in (key or "").strip().lower() if ch.isalnum() or ch == "_")

    @classmethod
    def _get_first(cls, row: Dict[str, Any], keys: Iterable[str]) -> str:
        normalized_row = {cls._normalize_key(k): v for k, v in row.items()}
        for key in keys:
            value = normalized_row.get(cls._normalize_key(key))
            if value is not None:
                return str(value).strip()
        return ""

    @classmethod
    def normalize_record(cls, row: Dict[str, Any]) -> CertificateRecord:
        """Build a record from a raw row regardless of header variations.

        Raises:
            LoadError: If the row has no certificate ID
        """
        if not isinstance(row, dict):
            raise LoadError(f"Certificate entry is not an object: {row!r}")

        certificate_id = cls._get_first(row, ID_KEYS)
        if not certificate_id:
            raise LoadError(f"Certificate entry has no certificateId: {row!r}")

        name = cls._get_first(row, NAME_KEYS)
        known = {cls._normalize_key(k) for k in ID_KEYS + NAME_KEYS}
        extra = {k: v for k, v in row.items() if k is not None and cls._normalize_key(k) not in known}
        return CertificateRecord(certificate_id=certificate_id, name=name, extra=extra)

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> Tuple[CertificateRecord, ...]:
        """
        Loaded records

        Raises:
            LoadError: If the dataset has not been loaded successfully
        """
        if self._records is None:
            raise LoadError(self.load_error or "Certificate data has not been loaded")
        return self._records

    @property
    def document(self) -> Dict[str, Any]:
        """The dataset as a ``{"certificates": [...]}`` document"""
        if self._document is None:
            self._document = {"certificates": [r.to_dict() for r in self.records]}
        return self._document

    async def load(self) -> Tuple[CertificateRecord, ...]:
        """
        Fetch and parse the dataset

        Returns:
            Tuple of certificate records

        Raises:
            LoadError: If the source is unreachable or malformed
        """
        try:
            if is_url(self.source):
                text = await self._fetch(self.source)
            else:
                text = self._read_file(self.source)

            if self.source.lower().endswith(".csv"):
                records, document = self._parse_csv(text), None
            else:
                records, document = self._parse_json(text)
        except LoadError as e:
            self.load_error = str(e)
            logger.warning("Failed to load certificates from %s: %s", self.source, e)
            raise

        self._records = records
        self._document = document
        self.load_error = None
        logger.info("Loaded %d certificates from %s", len(records), self.source)
        return records

    async def _fetch(self, url: str) -> str:
        client = self._client or httpx.AsyncClient()
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.HTTPError as e:
            raise LoadError(f"Failed to load certificates: {e}") from e
        finally:
            if self._client is None:
                await client.aclose()

    @staticmethod
    def _read_file(path: str) -> str:
        if not os.path.exists(path):
            raise LoadError(f"Certificate data file not found: {path}")
        try:
            # utf-8-sig tolerates files saved with a BOM (common with Excel exports)
            with open(path, "r", encoding="utf-8-sig", newline="") as file:
                return file.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Failed to read certificate data: {e}") from e

    def _parse_json(self, text: str) -> Tuple[Tuple[CertificateRecord, ...], Dict[str, Any]]:
        try:
            data = json.loads(text)
        except ValueError as e:
            raise LoadError(f"Certificate data is not valid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("certificates"), list):
            raise LoadError("Certificate data must contain a 'certificates' list")

        records = tuple(self.normalize_record(row) for row in data["certificates"])
        return records, data

    def _parse_csv(self, text: str) -> Tuple[CertificateRecord, ...]:
        reader = csv.DictReader(io.StringIO(text))
        records: List[CertificateRecord] = []
        try:
            for row in reader:
                records.append(self.normalize_record(row))
        except csv.Error as e:
            raise LoadError(f"Certificate CSV is malformed: {e}") from e
        return tuple(records)
