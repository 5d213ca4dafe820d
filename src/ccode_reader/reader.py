"""
Barcode reader: composes extraction, C-code decoding and metadata lookup.

A reading takes one or two text inputs, an ISBN field and a C-code field, as
typed or as sent by a keyboard-emulating barcode scanner. Each value is looked
for in its own field first and in the other field second, so a single
combined scan line (e.g. "9784101001012C0091") also works.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from .barcode import extract_ccode, extract_isbn, normalize
from .ccode import DecodedCCode, decode_ccode
from .config import ReaderConfig
from .providers import BookMetadata, MetadataProvider, build_providers

logger = logging.getLogger(__name__)


class ReaderError(Exception):
    """A reading that cannot produce a decoded C-code."""


class EmptyInputError(ReaderError):
    def __init__(self):
        super().__init__("No input")


class CCodeNotFoundError(ReaderError):
    def __init__(self):
        super().__init__("C-code could not be detected")


class CCodeDecodeError(ReaderError):
    def __init__(self, ccode: str):
        self.ccode = ccode
        super().__init__(f"C-code could not be decoded: {ccode}")


@dataclass
class ReadResult:
    """Everything known about one scanned book."""

    ccode: str
    decoded: DecodedCCode
    isbn: str | None = None
    metadata: dict[str, BookMetadata | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "isbn": self.isbn,
            "ccode": self.ccode,
            "decoded": self.decoded.to_dict(),
            "metadata": {
                name: meta.to_dict() if meta else None for name, meta in self.metadata.items()
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


def read_barcodes(
    isbn_text: str | None,
    ccode_text: str | None = None,
    lenient: bool = False,
) -> ReadResult:
    """
    Extract the ISBN and C-code from the two input fields and decode the C-code.

    A missing ISBN is not an error; a missing or undecodable C-code is.

    Raises:
        EmptyInputError: both fields are blank
        CCodeNotFoundError: no C-code in either field
        CCodeDecodeError: a C-code was extracted but does not decode
    """
    isbn_field = normalize(isbn_text)
    ccode_field = normalize(ccode_text)
    if not isbn_field and not ccode_field:
        raise EmptyInputError()

    isbn = extract_isbn(isbn_field) or extract_isbn(ccode_field)
    ccode = extract_ccode(ccode_field, lenient=lenient) or extract_ccode(
        isbn_field, lenient=lenient
    )

    if ccode is None:
        logger.debug(f"No C-code in {isbn_field!r} / {ccode_field!r}")
        raise CCodeNotFoundError()

    decoded = decode_ccode(ccode)
    if decoded is None:
        raise CCodeDecodeError(ccode)

    return ReadResult(ccode=ccode, decoded=decoded, isbn=isbn)


class BarcodeReader:
    """
    Reads barcodes and fetches metadata for the ISBN from every enabled provider.

    Provider lookups run concurrently; each is independently fallible and a
    failure shows up as None under that provider's name.
    """

    def __init__(
        self,
        config: ReaderConfig | None = None,
        providers: list[MetadataProvider] | None = None,
    ):
        self.config = config or ReaderConfig()
        if providers is None:
            providers = build_providers(self.config.providers.enabled_names(), self.config.http)
        self.providers = providers

    async def fetch_metadata(self, isbn: str) -> dict[str, BookMetadata | None]:
        """Look the ISBN up with every provider."""
        results = await asyncio.gather(*(p.fetch_by_isbn(isbn) for p in self.providers))
        found = sum(1 for r in results if r is not None)
        logger.info(f"ISBN {isbn}: {found}/{len(self.providers)} provider(s) returned metadata")
        return {p.name: r for p, r in zip(self.providers, results)}

    async def read(
        self,
        isbn_text: str | None,
        ccode_text: str | None = None,
        fetch: bool | None = None,
    ) -> ReadResult:
        """
        Read one book from the ISBN and C-code fields.

        fetch overrides config.fetch_metadata when given.
        """
        result = read_barcodes(isbn_text, ccode_text, lenient=self.config.lenient_ccode)

        should_fetch = self.config.fetch_metadata if fetch is None else fetch
        if should_fetch and result.isbn:
            result.metadata = await self.fetch_metadata(result.isbn)

        return result
