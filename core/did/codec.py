"""
DID Document Codec

Canonical byte form of DID documents and the inline/reference decision
under the ledger's per-field size ceiling.

Encoding ladder:
1. Full canonical document fits       -> Inline, payload = document bytes
2. Otherwise                          -> Reference, payload = locator
   (``<reference_base_url>/<address>``); a compact placeholder document
   (context, id, first key) travels alongside when it fits
3. Locator itself does not fit        -> DocumentTooLargeException

Reference encodings are lossy and say so: decode returns a thin document
flagged ``lossy=True``; the full body lives in the off-ledger DIDRecord.
The size decision is the pure ``classify`` function, so it can be tested
without a ledger.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from core.config.runtime import CodecConfig
from core.schemas.canonical import canonical_bytes, loads_canonical
from core.schemas.did import DIDDocument, EncodingStrategy
from core.schemas.errors import DocumentTooLargeException, InvalidFormatException
from core.schemas.versioning import LEDGER_FIELD_LIMIT

from .documents import build_placeholder, build_thin_document
from .identifiers import format_did, parse_did

logger = logging.getLogger(__name__)

DEFAULT_REFERENCE_BASE_URL = "https://api.violette.app/did"

# Ledger object field names
URI_FIELD = "URI"
DOCUMENT_FIELD = "DIDDocument"


class EncodedDocument(BaseModel):
    """
    Output of encode.

    Attributes:
        payload: Inline document bytes, or the locator for Reference
        strategy: INLINE or REFERENCE
        placeholder: Compact document bytes carried with a Reference, if they fit
        lossy: True when the payload cannot reproduce the full document
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    payload: bytes
    strategy: EncodingStrategy
    placeholder: Optional[bytes] = None
    lossy: bool = False

    @property
    def size(self) -> int:
        return len(self.payload)


class DecodedDocument(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    document: DIDDocument
    strategy: EncodingStrategy
    lossy: bool = False


def document_bytes(document: DIDDocument) -> bytes:
    """Canonical UTF-8 JSON of the document wire form."""
    return canonical_bytes(document.to_wire())


def classify(payload: bytes, limit: int = LEDGER_FIELD_LIMIT) -> EncodingStrategy:
    """INLINE if the payload fits the ceiling, else REFERENCE."""
    return EncodingStrategy.INLINE if len(payload) <= limit else EncodingStrategy.REFERENCE


class DIDDocumentCodec:
    """
    Encodes documents for the ledger and decodes ledger payloads.

    Usage:
        codec = DIDDocumentCodec()
        encoded = codec.encode(document)
        fields = codec.to_ledger_fields(encoded)
    """

    def __init__(
        self,
        *,
        limit: int = LEDGER_FIELD_LIMIT,
        reference_base_url: str = DEFAULT_REFERENCE_BASE_URL,
    ) -> None:
        self.limit = limit
        self.reference_base_url = reference_base_url.rstrip("/")

    @classmethod
    def from_config(cls, config: CodecConfig) -> "DIDDocumentCodec":
        return cls(limit=config.document_limit, reference_base_url=config.reference_base_url)

    def locator(self, did_id: str) -> str:
        """External locator for a DID's full document."""
        return f"{self.reference_base_url}/{parse_did(did_id).address}"

    def encode(self, document: DIDDocument) -> EncodedDocument:
        """
        Raises:
            InvalidFormatException: If the document id is not a valid DID.
            DocumentTooLargeException: If not even the locator fits.
        """
        payload = document_bytes(document)
        if classify(payload, self.limit) == EncodingStrategy.INLINE:
            logger.debug("Document %s encoded inline (%d bytes)", document.id, len(payload))
            return EncodedDocument(payload=payload, strategy=EncodingStrategy.INLINE)

        locator = self.locator(document.id).encode("utf-8")
        if classify(locator, self.limit) != EncodingStrategy.INLINE:
            raise DocumentTooLargeException(size=len(locator), limit=self.limit)

        placeholder: Optional[bytes] = document_bytes(build_placeholder(document))
        if classify(placeholder, self.limit) != EncodingStrategy.INLINE:
            placeholder = None

        logger.info(
            "Document %s is %d bytes (limit %d); using reference encoding%s",
            document.id,
            len(payload),
            self.limit,
            " with placeholder" if placeholder else "",
        )
        return EncodedDocument(
            payload=locator,
            strategy=EncodingStrategy.REFERENCE,
            placeholder=placeholder,
            lossy=True,
        )

    def decode(
        self,
        payload: bytes,
        strategy: EncodingStrategy,
        placeholder: Optional[bytes] = None,
    ) -> DecodedDocument:
        """
        Inverse of encode.

        Inline payloads return the exact document. Reference payloads return
        a thin document built from the placeholder if present, else from
        the locator's address, with ``lossy=True``.

        Raises:
            InvalidFormatException: If the payload cannot be decoded.
        """
        if strategy == EncodingStrategy.INLINE:
            return DecodedDocument(
                document=self._parse_document(payload),
                strategy=EncodingStrategy.INLINE,
            )

        if placeholder:
            document = self._parse_document(placeholder)
        else:
            document = build_thin_document(self._did_from_locator(payload))
        return DecodedDocument(document=document, strategy=EncodingStrategy.REFERENCE, lossy=True)

    def to_ledger_fields(self, encoded: EncodedDocument, *, clear_unused: bool = False) -> dict[str, str]:
        """
        DIDSet fields for an encoding (hex, upper case).

        With ``clear_unused`` the field the encoding does not use is sent
        empty, which removes it from an existing ledger entry.
        """
        fields: dict[str, str] = {}
        if encoded.strategy == EncodingStrategy.INLINE:
            fields[DOCUMENT_FIELD] = encoded.payload.hex().upper()
            if clear_unused:
                fields[URI_FIELD] = ""
        else:
            fields[URI_FIELD] = encoded.payload.hex().upper()
            if encoded.placeholder:
                fields[DOCUMENT_FIELD] = encoded.placeholder.hex().upper()
            elif clear_unused:
                fields[DOCUMENT_FIELD] = ""
        return fields

    def from_ledger_object(self, obj: dict[str, Any]) -> DecodedDocument:
        """
        Decode a DID ledger entry.

        A URI marks a Reference encoding (DIDDocument, if present, is its
        placeholder); a DIDDocument alone is Inline.

        Raises:
            InvalidFormatException: If the entry carries neither field or
                holds malformed hex.
        """
        uri = self._unhex(obj.get(URI_FIELD))
        body = self._unhex(obj.get(DOCUMENT_FIELD))
        if uri:
            return self.decode(uri, EncodingStrategy.REFERENCE, placeholder=body)
        if body:
            return self.decode(body, EncodingStrategy.INLINE)
        raise InvalidFormatException("DID ledger entry has neither URI nor DIDDocument")

    @staticmethod
    def _unhex(value: Any) -> Optional[bytes]:
        if not value:
            return None
        try:
            return bytes.fromhex(value)
        except (TypeError, ValueError) as e:
            raise InvalidFormatException("DID ledger field is not hex", value=str(value)) from e

    @staticmethod
    def _parse_document(payload: bytes) -> DIDDocument:
        try:
            return DIDDocument.model_validate(loads_canonical(payload))
        except ValueError as e:
            raise InvalidFormatException(
                "Payload is not a valid DID document",
                details={"error": str(e)},
            ) from e

    def _did_from_locator(self, payload: bytes) -> str:
        try:
            locator = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidFormatException("Reference locator is not UTF-8") from e
        address = locator.rstrip("/").rsplit("/", 1)[-1]
        return format_did(address)


__all__ = [
    "DEFAULT_REFERENCE_BASE_URL",
    "EncodedDocument",
    "DecodedDocument",
    "document_bytes",
    "classify",
    "DIDDocumentCodec",
]
