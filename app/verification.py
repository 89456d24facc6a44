"""
Verification Module
Sanitizes a submitted certificate ID and looks it up in the loaded dataset
"""

import re
from dataclasses import dataclass
from typing import Sequence, Union

from app.certificate_store import CertificateRecord
from app.errors import ValidationError

_UNSAFE_CHARS = re.compile(r"[<>\"'&]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Verified:
    record: CertificateRecord


@dataclass(frozen=True)
class NotFound:
    queried_id: str


VerificationResult = Union[Verified, NotFound]


def sanitize_input(raw: str) -> str:
    """Remove markup characters, trim and collapse internal whitespace."""
    without_markup = _UNSAFE_CHARS.sub("", raw or "")
    return _WHITESPACE.sub(" ", without_markup).strip()


def normalize_query(raw: str) -> str:
    """
    Turn raw user input into a lookup key

    Raises:
        ValidationError: If nothing is left after sanitizing
    """
    query = sanitize_input(raw).upper()
    if not query:
        raise ValidationError("Please enter a Certificate ID.")
    return query


class VerificationEngine:
    """Exact, case-insensitive certificate ID lookup"""

    def __init__(self, records: Sequence[CertificateRecord]):
        self._records = records

    def find(self, certificate_id: str):
        normalized_id = certificate_id.strip().upper()
        for record in self._records:
            if record.certificate_id.upper() == normalized_id:
                return record
        return None

    def verify(self, raw_input: str) -> VerificationResult:
        """
        Verify a certificate ID

        Args:
            raw_input: The identifier as typed by the user

        Returns:
            Verified with the matching record, or NotFound with the normalized ID

        Raises:
            ValidationError: If the input is empty after sanitizing
        """
        query = normalize_query(raw_input)
        record = self.find(query)
        if record is None:
            return NotFound(queried_id=query)
        return Verified(record=record)
