"""
CLI runner for ccode-reader.

Usage:
    python -m ccode_reader.run [ISBN_TEXT] [CCODE_TEXT] [OPTIONS]

    # Read one book from the two barcodes
    python -m ccode_reader.run 9784101001012 1920093005804

    # Combined scan line, no network lookups
    python -m ccode_reader.run 9784101001012C0093 --no-fetch

    # Read scanner lines from stdin (ISBN line, then C-code line)
    python -m ccode_reader.run < scans.txt
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Iterable
from pathlib import Path

from .barcode import extract_isbn
from .config import ReaderConfig
from .reader import BarcodeReader, CCodeNotFoundError, ReaderError, ReadResult

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("ccode-reader")


def format_result(result: ReadResult) -> str:
    """Render a reading as human-readable text."""
    lines = [
        f"ISBN:    {result.isbn or '不明'}",
        f"C-code:  {result.ccode}",
        f"  対象:  {result.decoded.target}",
        f"  形態:  {result.decoded.format}",
        f"  内容:  {result.decoded.content}",
    ]
    for name, meta in result.metadata.items():
        if meta is None:
            lines.append(f"[{name}] 取得できませんでした")
            continue
        title = meta.title or "-"
        if meta.subtitle:
            title = f"{title} {meta.subtitle}"
        if meta.volume:
            title = f"{title} ({meta.volume})"
        lines.append(f"[{name}] {title}")
        if meta.authors:
            lines.append(f"    著者: {', '.join(meta.authors)}")
        if meta.publisher:
            lines.append(f"    出版社: {meta.publisher}")
        if meta.ccode and meta.ccode != result.ccode:
            lines.append(f"    C-code: {meta.ccode}")
        if meta.ndc:
            lines.append(f"    NDC: {meta.ndc}")
    return "\n".join(lines)


def emit(result: ReadResult, as_json: bool) -> None:
    print(result.to_json() if as_json else format_result(result))


async def read_stream(
    reader: BarcodeReader, lines: Iterable[str], fetch: bool, as_json: bool
) -> int:
    """
    Read scanner lines one book at a time.

    A line holding an ISBN but no C-code is kept and paired with the next
    line, the way a scanner sends the upper and lower book barcodes.
    Returns the number of lines that could not be read.
    """
    errors = 0
    pending_isbn = ""

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        isbn_text, ccode_text = (pending_isbn, line) if pending_isbn else (line, "")
        try:
            result = await reader.read(isbn_text, ccode_text, fetch=fetch)
        except CCodeNotFoundError:
            if extract_isbn(line):
                # A new ISBN line: the held one never got its C-code
                if pending_isbn:
                    logger.error(f"C-code could not be detected: {pending_isbn!r}")
                    errors += 1
                pending_isbn = line
                continue
            logger.error(f"C-code could not be detected: {line!r}")
            errors += 1
            pending_isbn = ""
            continue
        except ReaderError as e:
            logger.error(f"{e}: {line!r}")
            errors += 1
            pending_isbn = ""
            continue

        pending_isbn = ""
        emit(result, as_json)

    if pending_isbn:
        logger.error(f"C-code could not be detected: {pending_isbn!r}")
        errors += 1

    return errors


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="ccode-reader: decode Japanese book barcodes (ISBN + C-code)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # ISBN barcode and second book barcode
    python -m ccode_reader.run 9784101001012 1920093005804

    # Combined input, decode only
    python -m ccode_reader.run 9784101001012-0093 --no-fetch

    # JSON output using a config file
    python -m ccode_reader.run --config datasette.yaml --json 978-4-10-100101-2 C0093
        """,
    )

    parser.add_argument("isbn_text", nargs="?", help="ISBN field (or combined scan line)")
    parser.add_argument("ccode_text", nargs="?", default="", help="C-code field")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("datasette.yaml"),
        help="Path to config file (default: datasette.yaml)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Fall back to the last four digits anywhere when no C-code pattern matches",
    )
    parser.add_argument(
        "--no-fetch",
        action="store_true",
        help="Skip metadata lookups",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = ReaderConfig.from_yaml(args.config)
    if args.lenient:
        config.lenient_ccode = True
    fetch = config.fetch_metadata and not args.no_fetch

    logger.debug(f"Config loaded from {args.config}: {config.to_dict()}")

    reader = BarcodeReader(config)

    if args.isbn_text is None:
        errors = asyncio.run(read_stream(reader, sys.stdin, fetch, args.json))
        return 0 if errors == 0 else 1

    try:
        result = asyncio.run(reader.read(args.isbn_text, args.ccode_text, fetch=fetch))
    except ReaderError as e:
        logger.error(str(e))
        return 1

    emit(result, args.json)
    return 0


if __name__ == "__main__":
    sys.exit(main())
