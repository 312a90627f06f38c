"""
Annotate the Japanese text of an OCR result.

Usage:
    kanjisabi-annotate result.tsv            # Tesseract TSV output
    kanjisabi-annotate --image capture.png   # run Tesseract first
    tesseract capture.png - -l jpn tsv | kanjisabi-annotate -

Prints the annotated runs as a JSON array.
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from PIL import Image

from kanjisabi.errors import AnalyzerUnavailableError
from kanjisabi.morph.models import AnnotatedRun
from kanjisabi.ocr.engine import recognize_tsv
from kanjisabi.pipeline.annotator import CapturePipeline, close_analyzer, open_analyzer
from kanjisabi.util.config.configuration import INFO, Config, UnanchoredBoxStrategy, get_config, logger
from kanjisabi.util.logging_config import set_level


def read_tsv(args, config: Config) -> str:
    if args.image:
        with Image.open(args.image) as image:
            return recognize_tsv(image, lang=config.pipeline.language, contrast=config.preproc.contrast)
    if args.tsv_file in (None, '-'):
        return sys.stdin.read()
    with open(args.tsv_file, 'r', encoding='utf-8') as f:
        return f.read()


async def annotate(tsv: str, config: Config) -> List[AnnotatedRun]:
    analyzer = await open_analyzer(config)
    try:
        pipeline = CapturePipeline.from_config(analyzer, config)
        return await pipeline.process_tsv(tsv) or []
    finally:
        await close_analyzer(analyzer)


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Annotate Japanese OCR output with morphological information')
    parser.add_argument('tsv_file', nargs='?', help='Tesseract TSV output, - or nothing for stdin')
    parser.add_argument('--image', help='Image to run OCR on instead of reading TSV')
    parser.add_argument('--service', action='store_true', default=config.pipeline.use_morph_service,
                        help='Analyze through the morph server instead of lindera directly')
    parser.add_argument('--unanchored', choices=[s.value for s in UnanchoredBoxStrategy],
                        default=config.pipeline.unanchored_bbox,
                        help='Box of morphemes that no OCR word starts in')
    parser.add_argument('--threshold', type=float, default=config.pipeline.confidence_threshold,
                        help='Minimum OCR confidence of a word')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None):
    config = get_config()
    args = build_parser(config).parse_args(argv)

    if args.debug or config.log_level != INFO:
        set_level('DEBUG' if args.debug else config.log_level)

    config.pipeline.use_morph_service = args.service
    config.pipeline.unanchored_bbox = args.unanchored
    config.pipeline.confidence_threshold = args.threshold

    try:
        tsv = read_tsv(args, config)
    except OSError as e:
        logger.error(f"Could not read input: {e}")
        sys.exit(1)

    try:
        results = asyncio.run(annotate(tsv, config))
    except AnalyzerUnavailableError as e:
        logger.error(str(e))
        sys.exit(1)

    print(json.dumps([run.to_dict() for run in results], ensure_ascii=False, indent=2))


if __name__ == '__main__':
    main()
