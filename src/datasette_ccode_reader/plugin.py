"""
Datasette plugin exposing the ccode-reader as JSON routes.

- GET /-/ccode-reader/lookup?isbn=...&ccode=...[&fetch=0]
- GET /-/ccode-reader/decode/<ccode>
"""

import logging

from datasette import Response, hookimpl
from datasette.utils.asgi import Request

from ccode_reader.ccode import decode_ccode
from ccode_reader.config import PLUGIN_NAME, ReaderConfig
from ccode_reader.reader import BarcodeReader, ReaderError

logger = logging.getLogger(__name__)

FALSE_VALUES = ("0", "false", "no", "off")


def get_reader_config(datasette) -> ReaderConfig:
    """Get reader configuration from datasette.yaml."""
    return ReaderConfig.from_dict(datasette.plugin_config(PLUGIN_NAME) or {})


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


async def ccode_reader_lookup(request: Request, datasette) -> Response:
    """Read the ISBN and C-code fields and return the decoded result as JSON."""
    isbn_text = request.args.get("isbn", "")
    ccode_text = request.args.get("ccode", "")

    fetch = None
    if "fetch" in request.args:
        fetch = request.args.get("fetch", "").lower() not in FALSE_VALUES

    reader = BarcodeReader(get_reader_config(datasette))
    try:
        result = await reader.read(isbn_text, ccode_text, fetch=fetch)
    except ReaderError as e:
        logger.info(f"Lookup rejected: {e}")
        return Response.json({"error": str(e)}, status=400)

    return Response.json(result.to_dict())


async def ccode_reader_decode(request: Request, datasette) -> Response:
    """Decode a bare 4-digit C-code."""
    ccode = request.url_vars.get("ccode", "")
    decoded = decode_ccode(ccode)
    if decoded is None:
        return Response.json({"error": f"C-code could not be decoded: {ccode}"}, status=400)
    return Response.json(decoded.to_dict())


# -----------------------------------------------------------------------------
# Datasette Hooks
# -----------------------------------------------------------------------------


@hookimpl
def register_routes():
    """Register plugin routes with Datasette."""
    return [
        (r"^/-/ccode-reader/lookup$", ccode_reader_lookup),
        (r"^/-/ccode-reader/decode/(?P<ccode>[^/]+)$", ccode_reader_decode),
    ]
