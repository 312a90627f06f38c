"""
Line clustering and run segmentation of OCR words.

Words are grouped by the line the OCR engine assigned them to, then each line
is split into runs: maximal sequences of consecutive words that are
confidently recognized and made only of Japanese characters.
"""

from typing import Callable, Dict, Iterable, List

from kanjisabi.ocr.jpn_script import is_japanese_text
from kanjisabi.ocr.models import LineId, OCRWord, Run
from kanjisabi.util.config.configuration import DEFAULT_CONFIDENCE_THRESHOLD


def cluster_lines(words: Iterable[OCRWord]) -> Dict[LineId, List[OCRWord]]:
    """
    Group words by line id, in order of first appearance, each line sorted
    by ``word_num``.
    """
    lines: Dict[LineId, List[OCRWord]] = {}
    for word in words:
        lines.setdefault(word.line_id, []).append(word)
    for line in lines.values():
        line.sort(key=lambda w: w.word_num)
    return lines


def qualifies(word: OCRWord, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
              discriminator: Callable[[str], bool] = is_japanese_text) -> bool:
    return word.conf > threshold and discriminator(word.text)


def segment_line(line: List[OCRWord], threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
                 discriminator: Callable[[str], bool] = is_japanese_text) -> List[Run]:
    """
    Split a line (sorted by ``word_num``) into runs.

    A failing word closes the current run and is excluded. A gap in
    ``word_num`` closes the current run and the word starts a new one.
    """
    runs: List[Run] = []
    current: List[OCRWord] = []

    def close():
        if current:
            runs.append(Run(tuple(current)))
            current.clear()

    for word in line:
        if not qualifies(word, threshold, discriminator):
            close()
            continue
        if current and word.word_num != current[-1].word_num + 1:
            close()
        current.append(word)
    close()

    return runs


def segment_runs(words: Iterable[OCRWord], threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
                 discriminator: Callable[[str], bool] = is_japanese_text) -> List[Run]:
    """All runs of one recognition result, line after line."""
    runs: List[Run] = []
    for line in cluster_lines(words).values():
        runs.extend(segment_line(line, threshold, discriminator))
    return runs
