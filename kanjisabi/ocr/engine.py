"""
Tesseract adapter: captured image in, word-level TSV out.
"""

from typing import List, Optional

import pytesseract
from PIL import Image, ImageEnhance

from kanjisabi.ocr.models import OCRWord
from kanjisabi.ocr.tsv_parser import parse_tsv
from kanjisabi.util.config.configuration import logger


def contrast_factor(contrast: float) -> float:
    """Enhancement factor of a contrast percentage: 0 leaves the image alone, 100 quadruples it."""
    return ((100.0 + contrast) / 100.0) ** 2


def preprocess(image: Image.Image, contrast: Optional[float] = None) -> Image.Image:
    if image.mode not in ('RGB', 'L'):
        image = image.convert('RGB')
    if contrast:
        image = ImageEnhance.Contrast(image).enhance(contrast_factor(contrast))
    return image


def recognize_tsv(image: Image.Image, lang: str = 'jpn', contrast: Optional[float] = None) -> str:
    """
    Run Tesseract on ``image`` and return its TSV output, or an empty string
    when recognition fails.
    """
    try:
        return pytesseract.image_to_data(
            preprocess(image, contrast),
            lang=lang,
            output_type=pytesseract.Output.STRING,
        )
    except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError, OSError) as e:
        logger.error(f"OCR failed: {e}")
        return ''


def recognize_words(image: Image.Image, lang: str = 'jpn', contrast: Optional[float] = None) -> List[OCRWord]:
    words = parse_tsv(recognize_tsv(image, lang, contrast))
    logger.debug(f"Recognized {len(words)} words")
    return words
