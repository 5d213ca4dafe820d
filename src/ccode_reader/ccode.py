"""
C-code (Cコード) decoding for ccode-reader.

The C-code is the 4-digit classification printed under the JAN barcode of
Japanese books:

    C 0 0 9 3
      | | └┴─ content category (00-99)
      | └──── format
      └────── target readership

All tables are read-only mappings built once at import time.
"""

from dataclasses import asdict, dataclass
from types import MappingProxyType
from typing import Any

UNUSED = "未使用"

TARGET_LABELS = MappingProxyType(
    {
        "0": "一般",
        "1": "教養",
        "2": "実用",
        "3": "専門",
        "4": "検定教科書・消費税非課税品・その他",
        "5": "婦人",
        "6": "学参I（小中）",
        "7": "学参II（高校）",
        "8": "児童",
        "9": "雑誌扱い",
    }
)

FORMAT_LABELS = MappingProxyType(
    {
        "0": "単行本",
        "1": "文庫",
        "2": "新書",
        "3": "全集・双書",
        "4": "ムック・その他",
        "5": "事・辞典",
        "6": "図鑑",
        "7": "絵本",
        "8": "磁性媒体など",
        "9": "コミック",
    }
)

# Assigned content codes; everything else in 00-99 is UNUSED
_ASSIGNED_CONTENT = {
    # 総記
    "00": "総記",
    "01": "百科事典",
    "02": "年鑑・雑誌",
    "04": "情報科学",
    # 哲学・心理学・宗教
    "10": "哲学",
    "11": "心理（学）",
    "12": "倫理（学）",
    "14": "宗教",
    "15": "仏教",
    "16": "キリスト教",
    # 歴史・地理
    "20": "歴史総記",
    "21": "日本歴史",
    "22": "外国歴史",
    "23": "伝記",
    "25": "地理",
    "26": "旅行",
    # 社会科学
    "30": "社会科学総記",
    "31": "政治-含む国防軍事",
    "32": "法律",
    "33": "経済・財政・統計",
    "34": "経営",
    "36": "社会",
    "37": "教育",
    "39": "民族・風習",
    # 自然科学
    "40": "自然科学総記",
    "41": "数学",
    "42": "物理学",
    "43": "化学",
    "44": "天文・地学",
    "45": "生物学",
    "47": "医学・歯学・薬学",
    # 工学・工業
    "50": "工学・工学総記",
    "51": "土木",
    "52": "建築",
    "53": "機械",
    "54": "電気",
    "55": "電子通信",
    "56": "海事",
    "57": "採鉱・冶金",
    "58": "その他の工業",
    # 産業
    "60": "産業総記",
    "61": "農林業",
    "62": "水産業",
    "63": "商業",
    "65": "交通・通信",
    # 芸術・生活
    "70": "芸術総記",
    "71": "絵画・彫刻",
    "72": "写真・工芸",
    "73": "音楽・舞踊",
    "74": "演劇・映画",
    "75": "体育・スポーツ",
    "76": "諸芸・娯楽",
    "77": "家事",
    "79": "コミックス・劇画",
    # 語学
    "80": "語学総記",
    "81": "日本語",
    "82": "英米語",
    "84": "ドイツ語",
    "85": "フランス語",
    "87": "各国語",
    # 文学
    "90": "文学総記",
    "91": "日本文学総記",
    "92": "日本文学詩歌",
    "93": "日本文学、小説・物語",
    "95": "日本文学、評論、随筆、その他",
    "97": "外国文学小説",
    "98": "外国文学、その他",
}


def _build_content_row() -> MappingProxyType:
    return MappingProxyType(
        {f"{n:02d}": _ASSIGNED_CONTENT.get(f"{n:02d}", UNUSED) for n in range(100)}
    )


# The content subject list is shared by every target readership
CONTENT_LABELS = MappingProxyType({target: _build_content_row() for target in TARGET_LABELS})


@dataclass(frozen=True)
class DecodedCCode:
    """The three semantic axes of a C-code."""

    code: str
    target: str
    format: str
    content: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


def is_ccode(value: Any) -> bool:
    """True when value is exactly four ASCII digits."""
    return (
        isinstance(value, str)
        and len(value) == 4
        and value.isascii()
        and value.isdigit()
    )


def decode_ccode(code: Any) -> DecodedCCode | None:
    """
    Decode a 4-digit C-code into target, format and content labels.

    Returns None when code is not exactly four ASCII digits. Every
    well-formed code decodes; unassigned content codes come back as UNUSED.
    """
    if not is_ccode(code):
        return None

    target_digit, format_digit, content_code = code[0], code[1], code[2:]
    return DecodedCCode(
        code=code,
        target=TARGET_LABELS[target_digit],
        format=FORMAT_LABELS[format_digit],
        content=CONTENT_LABELS[target_digit][content_code],
    )
