"""Tests for bibliographic metadata providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from ccode_reader.config import HttpConfig
from ccode_reader.providers import (
    BookMetadata,
    GoogleBooksProvider,
    NDLProvider,
    OpenBDProvider,
    OpenLibraryProvider,
    build_providers,
)

ISBN = "9784101001012"

NDL_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss xmlns:dc="http://purl.org/dc/elements/1.1/"
     xmlns:dcndl="http://ndl.go.jp/dcndl/terms/"
     xmlns:dcterms="http://purl.org/dc/terms/"
     xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
     version="2.0">
  <channel>
    <title>こころ - 国立国会図書館サーチ</title>
    <item>
      <title>こころ</title>
      <dc:title>こころ</dc:title>
      <dcndl:volume>改版</dcndl:volume>
      <dc:creator>夏目漱石 著</dc:creator>
      <dc:publisher>新潮社</dc:publisher>
      <dcterms:issued xsi:type="dcterms:W3CDTF">2004</dcterms:issued>
      <dc:subject xsi:type="dcndl:NDC9">913.6</dc:subject>
      <dc:subject xsi:type="dcndl:NDC10">913.6x</dc:subject>
      <dc:subject>小説</dc:subject>
    </item>
  </channel>
</rss>
"""

NDL_EMPTY_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>none</title></channel></rss>
"""


@pytest.fixture
def mock_response():
    """Create a mock httpx response."""

    def _make_response(json_data=None, status_code=200, content=b""):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = json_data
        response.content = content
        response.raise_for_status = MagicMock()
        if status_code >= 400:
            response.raise_for_status.side_effect = httpx.HTTPStatusError(
                "Error", request=MagicMock(), response=response
            )
        return response

    return _make_response


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient and hand back the mocked client."""
    with patch("httpx.AsyncClient") as MockClient:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        MockClient.return_value = mock_client
        yield mock_client


class TestBookMetadata:
    """Test BookMetadata dataclass."""

    def test_to_dict_minimal(self):
        """Should serialize minimal metadata."""
        meta = BookMetadata(provider="openbd", isbn=ISBN)
        assert meta.to_dict() == {"provider": "openbd", "isbn": ISBN}

    def test_to_dict_full(self):
        """Should include every populated field."""
        meta = BookMetadata(
            provider="openbd",
            isbn=ISBN,
            title="こころ",
            subtitle="副題",
            volume="上",
            publisher="新潮社",
            authors=["夏目漱石"],
            published_date="2004-03",
            ccode="0193",
            ndc="913.6",
            cover_url="https://cover.openbd.jp/9784101001012.jpg",
        )
        result = meta.to_dict()
        assert result["title"] == "こころ"
        assert result["authors"] == ["夏目漱石"]
        assert result["ccode"] == "0193"
        assert result["ndc"] == "913.6"


class TestGoogleBooksProvider:
    """Test Google Books lookups."""

    async def test_found(self, mock_http, mock_response):
        """Should map volumeInfo fields."""
        mock_http.get.return_value = mock_response(
            {
                "totalItems": 1,
                "items": [
                    {
                        "volumeInfo": {
                            "title": "こころ",
                            "authors": ["夏目漱石"],
                            "publisher": "新潮社",
                            "publishedDate": "2004",
                            "imageLinks": {"thumbnail": "http://books.google.com/t.jpg"},
                        }
                    }
                ],
            }
        )

        meta = await GoogleBooksProvider().fetch_by_isbn(ISBN)

        assert meta is not None
        assert meta.provider == "google_books"
        assert meta.title == "こころ"
        assert meta.authors == ["夏目漱石"]
        assert meta.cover_url == "http://books.google.com/t.jpg"
        _, kwargs = mock_http.get.call_args
        assert kwargs["params"] == {"q": f"isbn:{ISBN}"}

    async def test_no_items(self, mock_http, mock_response):
        """Should return None when nothing matches."""
        mock_http.get.return_value = mock_response({"totalItems": 0})
        assert await GoogleBooksProvider().fetch_by_isbn(ISBN) is None

    async def test_http_error(self, mock_http, mock_response):
        """Should return None on HTTP errors."""
        mock_http.get.return_value = mock_response({}, status_code=500)
        assert await GoogleBooksProvider().fetch_by_isbn(ISBN) is None

    async def test_not_found(self, mock_http, mock_response):
        """Should return None on 404."""
        mock_http.get.return_value = mock_response({}, status_code=404)
        assert await GoogleBooksProvider().fetch_by_isbn(ISBN) is None

    async def test_transport_error(self, mock_http):
        """Should return None when the request itself fails."""
        mock_http.get.side_effect = httpx.ConnectError("connection refused")
        assert await GoogleBooksProvider().fetch_by_isbn(ISBN) is None

    async def test_invalid_json(self, mock_http, mock_response):
        """Should return None when the body is not JSON."""
        response = mock_response()
        response.json.side_effect = ValueError("Expecting value")
        mock_http.get.return_value = response
        assert await GoogleBooksProvider().fetch_by_isbn(ISBN) is None


class TestOpenBDProvider:
    """Test openBD lookups."""

    async def test_found(self, mock_http, mock_response):
        """Should map summary and ONIX fields, including the C-code."""
        mock_http.get.return_value = mock_response(
            [
                {
                    "summary": {
                        "isbn": ISBN,
                        "title": "こころ",
                        "volume": "",
                        "publisher": "新潮社",
                        "pubdate": "2004-03",
                        "cover": "https://cover.openbd.jp/9784101001012.jpg",
                        "author": "夏目漱石／著",
                    },
                    "onix": {
                        "DescriptiveDetail": {
                            "TitleDetail": {
                                "TitleType": "01",
                                "TitleElement": {
                                    "TitleElementLevel": "01",
                                    "TitleText": {"content": "こころ"},
                                    "Subtitle": {"content": "改版"},
                                },
                            },
                            "Subject": [
                                {"SubjectSchemeIdentifier": "78", "SubjectCode": "0193"},
                                {"SubjectSchemeIdentifier": "79", "SubjectCode": "02"},
                            ],
                        }
                    },
                }
            ]
        )

        meta = await OpenBDProvider().fetch_by_isbn(ISBN)

        assert meta is not None
        assert meta.title == "こころ"
        assert meta.subtitle == "改版"
        assert meta.volume is None
        assert meta.authors == ["夏目漱石／著"]
        assert meta.ccode == "0193"
        assert meta.published_date == "2004-03"

    async def test_unknown_isbn(self, mock_http, mock_response):
        """openBD answers [null] for unknown ISBNs."""
        mock_http.get.return_value = mock_response([None])
        assert await OpenBDProvider().fetch_by_isbn(ISBN) is None

    async def test_summary_only(self, mock_http, mock_response):
        """Should tolerate records without ONIX data."""
        mock_http.get.return_value = mock_response(
            [{"summary": {"title": "こころ", "author": "夏目漱石 著 姜尚中 解説"}}]
        )
        meta = await OpenBDProvider().fetch_by_isbn(ISBN)
        assert meta is not None
        assert meta.authors == ["夏目漱石", "著", "姜尚中", "解説"]
        assert meta.ccode is None
        assert meta.subtitle is None

    async def test_malformed_payload(self, mock_http, mock_response):
        """Should return None when the payload has an unexpected shape."""
        mock_http.get.return_value = mock_response([{"summary": "oops"}])
        assert await OpenBDProvider().fetch_by_isbn(ISBN) is None


class TestNDLProvider:
    """Test NDL Search lookups."""

    async def test_found(self, mock_http, mock_response):
        """Should parse the first RSS item."""
        mock_http.get.return_value = mock_response(content=NDL_RSS.encode("utf-8"))

        meta = await NDLProvider().fetch_by_isbn(ISBN)

        assert meta is not None
        assert meta.provider == "ndl"
        assert meta.title == "こころ"
        assert meta.volume == "改版"
        assert meta.publisher == "新潮社"
        assert meta.authors == ["夏目漱石 著"]
        assert meta.published_date == "2004"
        assert meta.ndc == "913.6x"

    async def test_no_items(self, mock_http, mock_response):
        """Should return None for an empty channel."""
        mock_http.get.return_value = mock_response(content=NDL_EMPTY_RSS.encode("utf-8"))
        assert await NDLProvider().fetch_by_isbn(ISBN) is None

    async def test_invalid_xml(self, mock_http, mock_response):
        """Should return None for unparseable XML."""
        mock_http.get.return_value = mock_response(content=b"<rss><channel>")
        assert await NDLProvider().fetch_by_isbn(ISBN) is None


class TestOpenLibraryProvider:
    """Test Open Library lookups."""

    async def test_found_with_author_names(self, mock_http, mock_response):
        """Should resolve author keys to names."""
        mock_http.get.side_effect = [
            mock_response(
                {
                    "key": "/books/OL123M",
                    "title": "Kokoro",
                    "publishers": ["Shinchosha"],
                    "publish_date": "2004",
                    "authors": [{"key": "/authors/OL1A"}],
                    "covers": [12345],
                }
            ),
            mock_response({"name": "Natsume Sōseki"}),
        ]

        meta = await OpenLibraryProvider().fetch_by_isbn(ISBN)

        assert meta is not None
        assert meta.title == "Kokoro"
        assert meta.publisher == "Shinchosha"
        assert meta.authors == ["Natsume Sōseki"]
        assert meta.cover_url == "https://covers.openlibrary.org/b/id/12345-M.jpg"

    async def test_author_lookup_failure(self, mock_http, mock_response):
        """An author lookup failure should not lose the edition."""
        mock_http.get.side_effect = [
            mock_response({"title": "Kokoro", "authors": [{"key": "/authors/OL1A"}]}),
            mock_response({}, status_code=500),
        ]

        meta = await OpenLibraryProvider().fetch_by_isbn(ISBN)

        assert meta is not None
        assert meta.authors == []

    async def test_not_found(self, mock_http, mock_response):
        """Should return None on 404."""
        mock_http.get.return_value = mock_response({}, status_code=404)
        assert await OpenLibraryProvider().fetch_by_isbn(ISBN) is None


class TestBuildProviders:
    """Test provider construction."""

    def test_build_in_order(self):
        providers = build_providers(["ndl", "google_books"])
        assert [p.name for p in providers] == ["ndl", "google_books"]

    def test_http_config_is_shared(self):
        http = HttpConfig(timeout_seconds=2.0)
        providers = build_providers(["openbd", "openlibrary"], http)
        assert all(p.http is http for p in providers)

    def test_unknown_provider(self):
        with pytest.raises(KeyError):
            build_providers(["amazon"])
