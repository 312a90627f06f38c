"""
Script membership for Japanese text, by explicit Unicode ranges.
"""

KANJI_RANGES = (
    (0x4E00, 0x9FFC),    # CJK Unified Ideographs
    (0xF900, 0xFAFF),    # CJK Compatibility Ideographs
    (0x3400, 0x4DBF),    # CJK Unified Ideographs Extension A
    (0x20000, 0x2A6DD),  # Extension B
    (0x2A700, 0x2B734),  # Extension C
    (0x2B740, 0x2B81D),  # Extension D
    (0x2B820, 0x2CEA1),  # Extension E
    (0x2CEB0, 0x2EBE0),  # Extension F
    (0x2F800, 0x2FA1D),  # CJK Compatibility Ideographs Supplement
    (0x30000, 0x3134A),  # Extension G
    (0x3005, 0x3005),    # 々 iteration mark
)

HIRAGANA_RANGES = (
    (0x3041, 0x3096),
    (0x1B001, 0x1B001),
    (0x1B11F, 0x1B11F),
    (0x1B150, 0x1B152),
)

KATAKANA_RANGES = (
    (0x30A1, 0x30FA),
    (0x30FC, 0x30FC),    # ー prolonged sound mark
    (0x31F0, 0x31FF),    # phonetic extensions
    (0xFF66, 0xFF9D),    # half-width forms
    (0x1B000, 0x1B000),
    (0x1B164, 0x1B167),
)


def _in_ranges(char: str, ranges) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in ranges)


def is_kanji(char: str) -> bool:
    return _in_ranges(char, KANJI_RANGES)


def is_hiragana(char: str) -> bool:
    return _in_ranges(char, HIRAGANA_RANGES)


def is_katakana(char: str) -> bool:
    return _in_ranges(char, KATAKANA_RANGES)


def is_japanese_char(char: str) -> bool:
    return is_kanji(char) or is_hiragana(char) or is_katakana(char)


def is_japanese_text(text: str) -> bool:
    """True when ``text`` is non-empty and made only of Kanji, Hiragana and Katakana."""
    return bool(text) and all(is_japanese_char(c) for c in text)
