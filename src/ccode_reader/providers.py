"""
Bibliographic metadata providers for ccode-reader.

Each provider looks a book up by ISBN and maps the service's own response
format onto a common BookMetadata record. Providers are independent: any
HTTP, transport or parse error is logged and turned into None so that one
failing service never hides the others.

Services:
- Google Books: https://developers.google.com/books/docs/v1/using
- openBD: https://openbd.jp/
- NDL Search (OpenSearch): https://ndlsearch.ndl.go.jp/help/api/specifications
- Open Library: https://openlibrary.org/developers/api
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx
from lxml import etree

from .config import HttpConfig

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_API = "https://www.googleapis.com/books/v1/volumes"
OPENBD_API = "https://api.openbd.jp/v1/get"
NDL_OPENSEARCH_API = "https://ndlsearch.ndl.go.jp/api/opensearch"
OL_API_BASE = "https://openlibrary.org"
OL_COVERS_BASE = "https://covers.openlibrary.org"

# ONIX SubjectSchemeIdentifier used by openBD for the C-code
ONIX_CCODE_SCHEME = "78"

NDL_NAMESPACES = {
    "dc": "http://purl.org/dc/elements/1.1/",
    "dcndl": "http://ndl.go.jp/dcndl/terms/",
    "dcterms": "http://purl.org/dc/terms/",
    "xsi": "http://www.w3.org/2001/XMLSchema-instance",
}
XSI_TYPE = f"{{{NDL_NAMESPACES['xsi']}}}type"


@dataclass
class BookMetadata:
    """Book metadata from a single provider, normalized to a common shape."""

    provider: str
    isbn: str
    title: str | None = None
    subtitle: str | None = None
    volume: str | None = None
    publisher: str | None = None
    authors: list[str] = field(default_factory=list)
    published_date: str | None = None
    ccode: str | None = None
    ndc: str | None = None
    cover_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting empty fields."""
        result: dict[str, Any] = {
            "provider": self.provider,
            "isbn": self.isbn,
        }
        if self.title:
            result["title"] = self.title
        if self.subtitle:
            result["subtitle"] = self.subtitle
        if self.volume:
            result["volume"] = self.volume
        if self.publisher:
            result["publisher"] = self.publisher
        if self.authors:
            result["authors"] = self.authors
        if self.published_date:
            result["published_date"] = self.published_date
        if self.ccode:
            result["ccode"] = self.ccode
        if self.ndc:
            result["ndc"] = self.ndc
        if self.cover_url:
            result["cover_url"] = self.cover_url
        return result


class MetadataProvider(ABC):
    """Base class for ISBN lookup providers."""

    name: str = "base"

    def __init__(self, http: HttpConfig | None = None):
        self.http = http or HttpConfig()

    @abstractmethod
    def build_request(self, isbn: str) -> tuple[str, dict[str, Any]]:
        """Return (url, query params) for an ISBN lookup."""

    @abstractmethod
    async def parse(
        self, isbn: str, response: httpx.Response, client: httpx.AsyncClient
    ) -> BookMetadata | None:
        """Map a successful response to BookMetadata, or None if no match."""

    async def fetch_by_isbn(self, isbn: str) -> BookMetadata | None:
        """
        Look up a book by ISBN.

        Returns BookMetadata if found, None if not found or on any error.
        """
        url, params = self.build_request(isbn)
        logger.debug(f"[{self.name}] Looking up ISBN {isbn}")

        async with httpx.AsyncClient(
            timeout=self.http.timeout_seconds,
            headers={"User-Agent": self.http.user_agent},
        ) as client:
            try:
                response = await client.get(url, params=params, follow_redirects=True)
                if response.status_code == 404:
                    logger.debug(f"[{self.name}] ISBN {isbn} not found")
                    return None
                response.raise_for_status()
                return await self.parse(isbn, response, client)
            except httpx.HTTPStatusError as e:
                logger.warning(f"[{self.name}] HTTP error looking up ISBN {isbn}: {e}")
                return None
            except httpx.HTTPError as e:
                logger.warning(f"[{self.name}] Request failed for ISBN {isbn}: {e}")
                return None
            except (
                ValueError,
                KeyError,
                TypeError,
                IndexError,
                AttributeError,
                etree.LxmlError,
            ) as e:
                logger.warning(f"[{self.name}] Could not parse response for ISBN {isbn}: {e}")
                return None


class GoogleBooksProvider(MetadataProvider):
    """Google Books volumes API."""

    name = "google_books"

    def build_request(self, isbn: str) -> tuple[str, dict[str, Any]]:
        return GOOGLE_BOOKS_API, {"q": f"isbn:{isbn}"}

    async def parse(self, isbn, response, client):
        data = response.json()
        if not data.get("totalItems") or not data.get("items"):
            return None

        info = data["items"][0].get("volumeInfo", {})
        return BookMetadata(
            provider=self.name,
            isbn=isbn,
            title=info.get("title"),
            subtitle=info.get("subtitle"),
            publisher=info.get("publisher"),
            authors=info.get("authors", []),
            published_date=info.get("publishedDate"),
            cover_url=info.get("imageLinks", {}).get("thumbnail"),
        )


class OpenBDProvider(MetadataProvider):
    """openBD, the Japanese publishers' shared bibliographic database."""

    name = "openbd"

    def build_request(self, isbn: str) -> tuple[str, dict[str, Any]]:
        return OPENBD_API, {"isbn": isbn}

    async def parse(self, isbn, response, client):
        # One entry per requested ISBN, null when unknown
        data = response.json()
        if not data or data[0] is None:
            return None

        item = data[0]
        summary = item.get("summary", {})
        descriptive = item.get("onix", {}).get("DescriptiveDetail", {})

        return BookMetadata(
            provider=self.name,
            isbn=isbn,
            title=summary.get("title") or None,
            subtitle=self._subtitle(descriptive),
            volume=summary.get("volume") or None,
            publisher=summary.get("publisher") or None,
            authors=summary.get("author", "").split(),
            published_date=summary.get("pubdate") or None,
            ccode=self._ccode(descriptive),
            cover_url=summary.get("cover") or None,
        )

    def _subtitle(self, descriptive: dict[str, Any]) -> str | None:
        title_element = descriptive.get("TitleDetail", {}).get("TitleElement", {})
        if isinstance(title_element, list):
            title_element = title_element[0] if title_element else {}
        return title_element.get("Subtitle", {}).get("content")

    def _ccode(self, descriptive: dict[str, Any]) -> str | None:
        for subject in descriptive.get("Subject", []):
            if subject.get("SubjectSchemeIdentifier") == ONIX_CCODE_SCHEME:
                return subject.get("SubjectCode")
        return None


class NDLProvider(MetadataProvider):
    """National Diet Library Search, OpenSearch RSS endpoint."""

    name = "ndl"

    def build_request(self, isbn: str) -> tuple[str, dict[str, Any]]:
        return NDL_OPENSEARCH_API, {"isbn": isbn, "cnt": 1}

    async def parse(self, isbn, response, client):
        root = etree.fromstring(response.content)
        item = root.find("./channel/item")
        if item is None:
            return None

        return BookMetadata(
            provider=self.name,
            isbn=isbn,
            title=self._text(item, "dc:title") or self._text(item, "title"),
            volume=self._text(item, "dcndl:volume"),
            publisher=self._text(item, "dc:publisher"),
            authors=[
                el.text.strip() for el in item.findall("dc:creator", NDL_NAMESPACES) if el.text
            ],
            published_date=self._text(item, "dcterms:issued") or self._text(item, "dc:date"),
            ndc=self._ndc(item),
        )

    def _text(self, item, path: str) -> str | None:
        text = item.findtext(path, namespaces=NDL_NAMESPACES)
        if text is None:
            return None
        return text.strip() or None

    def _ndc(self, item) -> str | None:
        # Prefer the newest NDC edition present (NDC10 over NDC9 over NDC8)
        found = {}
        for subject in item.findall("dc:subject", NDL_NAMESPACES):
            scheme = subject.get(XSI_TYPE, "")
            if scheme.startswith("dcndl:NDC") and subject.text:
                found[scheme] = subject.text.strip()
        for scheme in ("dcndl:NDC10", "dcndl:NDC9", "dcndl:NDC8", "dcndl:NDC"):
            if scheme in found:
                return found[scheme]
        return None


class OpenLibraryProvider(MetadataProvider):
    """Open Library ISBN endpoint, with author names resolved from their keys."""

    name = "openlibrary"

    def build_request(self, isbn: str) -> tuple[str, dict[str, Any]]:
        return f"{OL_API_BASE}/isbn/{isbn}.json", {}

    async def parse(self, isbn, response, client):
        data = response.json()

        author_keys = []
        for author_ref in data.get("authors", []):
            if isinstance(author_ref, dict):
                author_keys.append(author_ref.get("key", ""))
            elif isinstance(author_ref, str):
                author_keys.append(author_ref)

        names = await asyncio.gather(
            *(self._author_name(client, key) for key in author_keys if key)
        )

        publishers = data.get("publishers", [])
        covers = data.get("covers", [])
        return BookMetadata(
            provider=self.name,
            isbn=isbn,
            title=data.get("title"),
            subtitle=data.get("subtitle"),
            publisher=publishers[0] if publishers else None,
            authors=[name for name in names if name],
            published_date=data.get("publish_date"),
            cover_url=f"{OL_COVERS_BASE}/b/id/{covers[0]}-M.jpg" if covers else None,
        )

    async def _author_name(self, client: httpx.AsyncClient, author_key: str) -> str | None:
        if not author_key.startswith("/authors/"):
            author_key = f"/authors/{author_key}"
        try:
            response = await client.get(f"{OL_API_BASE}{author_key}.json", follow_redirects=True)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            return response.json().get("name")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"[{self.name}] Could not fetch author name for {author_key}: {e}")
            return None


PROVIDERS: dict[str, type[MetadataProvider]] = {
    GoogleBooksProvider.name: GoogleBooksProvider,
    OpenBDProvider.name: OpenBDProvider,
    NDLProvider.name: NDLProvider,
    OpenLibraryProvider.name: OpenLibraryProvider,
}


def build_providers(names: list[str], http: HttpConfig | None = None) -> list[MetadataProvider]:
    """Instantiate providers by name, in the given order."""
    return [PROVIDERS[name](http) for name in names]
