"""
Barcode text recognition for ccode-reader.

Turns raw scanner or keyboard input into an ISBN-13 candidate and a 4-digit
C-code candidate. Both extractors walk an ordered list of rules and return on
the first match; a miss is signalled with None, never an exception.
Pure Python implementation - no external dependencies.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

# Full-width digits U+FF10..U+FF19 sit at a fixed offset from ASCII 0..9
FULLWIDTH_DIGIT_OFFSET = 0xFEE0
FULLWIDTH_DIGITS = {
    code: code - FULLWIDTH_DIGIT_OFFSET for code in range(ord("０"), ord("９") + 1)
}

ISBN_LENGTH = 13
CCODE_LENGTH = 4


def normalize(text: str | None) -> str:
    """
    Normalize raw input before pattern matching.

    - Maps full-width digits to ASCII digits
    - Strips leading/trailing whitespace (internal whitespace is kept)
    - Returns "" for None or empty input
    """
    if not text:
        return ""
    return text.translate(FULLWIDTH_DIGITS).strip()


@dataclass(frozen=True)
class ExtractionRule:
    """A named pattern plus the function that pulls the candidate out of a match."""

    name: str
    pattern: re.Pattern[str]
    select: Callable[[re.Match[str]], str | None]
    anchored: bool = False  # True: whole text must match, False: search anywhere

    def apply(self, text: str) -> str | None:
        match = self.pattern.fullmatch(text) if self.anchored else self.pattern.search(text)
        if match is None:
            return None
        return self.select(match)


def _run_rules(rules: tuple[ExtractionRule, ...], text: str) -> str | None:
    for rule in rules:
        candidate = rule.apply(text)
        if candidate is not None:
            return candidate
    return None


# =============================================================================
# ISBN Extraction
# =============================================================================


def _strip_separators(value: str) -> str:
    """Remove hyphens and whitespace from a matched ISBN run."""
    return re.sub(r"[-\s]", "", value)


def _loose_isbn(match: re.Match[str]) -> str | None:
    # The greedy run may swallow a trailing C-code; keep the leading 13 digits
    digits = _strip_separators(match.group(0))
    return digits[:ISBN_LENGTH] if len(digits) >= ISBN_LENGTH else None


ISBN_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(
        name="exact",
        pattern=re.compile(r"97[89][0-9]{10}"),
        select=lambda m: m.group(0),
        anchored=True,
    ),
    ExtractionRule(
        name="hyphenated",
        pattern=re.compile(r"97[89][-\s0-9]{10,17}"),
        select=_loose_isbn,
    ),
    ExtractionRule(
        name="embedded",
        pattern=re.compile(r"97[89][0-9]{10}"),
        select=lambda m: m.group(0),
    ),
)


def extract_isbn(text: str | None) -> str | None:
    """
    Extract an ISBN-13 candidate from scanner or typed input.

    Rules, most specific first:
    1. The whole text is 13 digits starting with 978/979
    2. A 978/979 run with hyphens/spaces (e.g. "978-4-10-100101-2")
    3. 978/979 followed by 10 digits anywhere in the text

    The check digit is not validated.
    """
    return _run_rules(ISBN_RULES, normalize(text))


# =============================================================================
# C-code Extraction
# =============================================================================

CCODE_RULES: tuple[ExtractionRule, ...] = (
    # 9784101001012-0091
    ExtractionRule(
        name="jan_separated",
        pattern=re.compile(r"([0-9]{13})[-\s]([0-9]{4})"),
        select=lambda m: m.group(2),
        anchored=True,
    ),
    # 9784101001012C0091
    ExtractionRule(
        name="jan_c_prefixed",
        pattern=re.compile(r"([0-9]{13})C*([0-9]{4})"),
        select=lambda m: m.group(2),
        anchored=True,
    ),
    # 0091
    ExtractionRule(
        name="bare",
        pattern=re.compile(r"[0-9]{4}"),
        select=lambda m: m.group(0),
        anchored=True,
    ),
    # C0091
    ExtractionRule(
        name="c_prefixed",
        pattern=re.compile(r"C*([0-9]{4})"),
        select=lambda m: m.group(1),
        anchored=True,
    ),
    # 00912 (trailing check digit)
    ExtractionRule(
        name="check_digit",
        pattern=re.compile(r"([0-9]{4})[0-9]"),
        select=lambda m: m.group(1),
        anchored=True,
    ),
    # 1920093005804 (second bar of a Japanese book JAN)
    ExtractionRule(
        name="second_jan",
        pattern=re.compile(r"^192([0-9]{4})"),
        select=lambda m: m.group(1),
    ),
)

# Older scan formats: last four consecutive digits anywhere
LENIENT_CCODE_RULE = ExtractionRule(
    name="last_four_digits",
    pattern=re.compile(r"([0-9]{4})(?![0-9])(?!.*[0-9]{4})", re.DOTALL),
    select=lambda m: m.group(1),
)


def extract_ccode(text: str | None, lenient: bool = False) -> str | None:
    """
    Extract a 4-digit C-code candidate from scanner or typed input.

    Rules are tried in CCODE_RULES order; the first match wins. With
    lenient=True a final rule takes the last four consecutive digits found
    anywhere, which recovers codes from older scan formats at the cost of
    false positives.
    """
    cleaned = normalize(text)
    rules = CCODE_RULES + (LENIENT_CCODE_RULE,) if lenient else CCODE_RULES
    return _run_rules(rules, cleaned)
