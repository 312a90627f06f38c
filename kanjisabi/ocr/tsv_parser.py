"""
Parser for the tabular (TSV) output of the OCR engine.

Only word-level rows (level ``5``) are kept. The remaining fields are, in
order: page, block, paragraph, line, word_num, x, y, w, h, confidence, text.
"""

from typing import List, Optional

from kanjisabi.ocr.models import BBox, OCRWord
from kanjisabi.util.config.configuration import logger

WORD_LEVEL = '5'
MIN_FIELDS = 12


def parse_tsv_line(line: str) -> Optional[OCRWord]:
    """
    Parse one TSV row into an OCRWord.

    Returns None for non-word rows, rows with fewer than 12 fields and rows
    whose numeric fields do not parse.
    """
    fields = line.rstrip('\r\n').split('\t')
    if fields[0] != WORD_LEVEL:
        return None
    if len(fields) < MIN_FIELDS:
        logger.debug(f"Dropping short OCR record ({len(fields)} fields): {line!r}")
        return None

    try:
        page, block, paragraph, line_num, word_num = (int(f) for f in fields[1:6])
        x, y, w, h = (int(f) for f in fields[6:10])
        conf = float(fields[10])
    except ValueError:
        logger.debug(f"Dropping malformed OCR record: {line!r}")
        return None

    return OCRWord(
        text=fields[11],
        line_id=(page, block, paragraph, line_num),
        word_num=word_num,
        conf=conf,
        bbox=BBox(x, y, w, h),
    )


def parse_tsv(tsv: str) -> List[OCRWord]:
    """Parse the whole TSV output of one recognition call, in document order."""
    words = []
    for line in tsv.splitlines():
        word = parse_tsv_line(line)
        if word is not None:
            words.append(word)
    return words
