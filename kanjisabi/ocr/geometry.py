"""
Bounding box aggregation for runs and alignment of morphemes back onto them.

The OCR engine's vertical boxes are unreliable for Japanese text, so the
run's ``y`` and ``h`` are averaged out: each word contributes its ``y``/``h``
once, divided by the run's character count.
"""

from typing import List, Optional, Sequence

from kanjisabi.morph.models import Morpheme, VisualMorpheme
from kanjisabi.ocr.models import BBox, Run, RunGeometry
from kanjisabi.util.config.configuration import UnanchoredBoxStrategy


def aggregate_run(run: Run) -> RunGeometry:
    """Aggregate box of a run plus its per-character box table."""
    words = run.words
    chars = run.char_count

    x = min(word.x for word in words)
    w = max(word.x + word.w - x for word in words)
    y = int(sum(word.y for word in words) / chars)
    h = int(sum(word.h for word in words) / chars)

    char_boxes: List[Optional[BBox]] = []
    for word in words:
        char_boxes.append(word.bbox)
        char_boxes.extend([None] * (len(word.text) - 1))

    return RunGeometry(bbox=BBox(x, y, w, h), char_boxes=tuple(char_boxes))


def _estimated_char_box(char_boxes: Sequence[Optional[BBox]], index: int) -> Optional[BBox]:
    """
    Estimate the box of one character by slicing its word's box evenly
    between the word's characters.
    """
    anchor = index
    while anchor >= 0 and char_boxes[anchor] is None:
        anchor -= 1
    if anchor < 0:
        return None

    end = anchor + 1
    while end < len(char_boxes) and char_boxes[end] is None:
        end += 1

    word_box = char_boxes[anchor]
    char_width = word_box.w / (end - anchor)
    left = word_box.x + int(round((index - anchor) * char_width))
    right = word_box.x + int(round((index - anchor + 1) * char_width))
    return BBox(left, word_box.y, right - left, word_box.h)


def align_boxes(geometry: RunGeometry, lengths: Sequence[int],
                strategy: UnanchoredBoxStrategy = UnanchoredBoxStrategy.INTERPOLATE) -> List[Optional[BBox]]:
    """
    Box of each morpheme, given the morphemes' character counts in order.

    A morpheme's box envelopes the anchored characters it consumes. A
    morpheme consuming only continuation characters gets None with the
    ``unknown`` strategy, or a box sliced out of its word's box with
    ``interpolate``.

    Raises:
        ValueError: if the lengths do not add up to the run's character count.
    """
    char_boxes = geometry.char_boxes
    if sum(lengths) != len(char_boxes):
        raise ValueError(
            f"Morpheme lengths add up to {sum(lengths)} characters, the run has {len(char_boxes)}")

    boxes: List[Optional[BBox]] = []
    index = 0
    for length in lengths:
        consumed = range(index, index + length)
        box = BBox.envelope(char_boxes[i] for i in consumed if char_boxes[i] is not None)
        if box is None and strategy == UnanchoredBoxStrategy.INTERPOLATE:
            box = BBox.envelope(
                estimated for estimated in (_estimated_char_box(char_boxes, i) for i in consumed)
                if estimated is not None
            )
        boxes.append(box)
        index += length

    return boxes


def align_morphemes(geometry: RunGeometry, morphemes: Sequence[Morpheme],
                    strategy: UnanchoredBoxStrategy = UnanchoredBoxStrategy.INTERPOLATE) -> List[VisualMorpheme]:
    boxes = align_boxes(geometry, [m.char_count for m in morphemes], strategy)
    return [VisualMorpheme(morpheme, box) for morpheme, box in zip(morphemes, boxes)]
