from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

LineId = Tuple[int, int, int, int]


@dataclass(frozen=True)
class BBox:
    """Axis-aligned box in captured-image pixel space."""
    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @classmethod
    def envelope(cls, boxes: Iterable['BBox']) -> Optional['BBox']:
        """Smallest box containing all ``boxes``, or None when there are none."""
        boxes = list(boxes)
        if not boxes:
            return None
        x = min(b.x for b in boxes)
        y = min(b.y for b in boxes)
        right = max(b.right for b in boxes)
        bottom = max(b.bottom for b in boxes)
        return cls(x, y, right - x, bottom - y)

    def to_dict(self) -> Dict[str, int]:
        return {'x': self.x, 'y': self.y, 'w': self.w, 'h': self.h}


@dataclass(frozen=True)
class OCRWord:
    """One word-level record of the OCR engine output."""
    text: str
    line_id: LineId
    word_num: int
    conf: float
    bbox: BBox

    @property
    def x(self) -> int:
        return self.bbox.x

    @property
    def y(self) -> int:
        return self.bbox.y

    @property
    def w(self) -> int:
        return self.bbox.w

    @property
    def h(self) -> int:
        return self.bbox.h


@dataclass(frozen=True)
class Run:
    """Contiguous, confidence- and script-filtered words of a single OCR line."""
    words: Tuple[OCRWord, ...]

    def __post_init__(self):
        if not self.words:
            raise ValueError("A run needs at least one word")

    @property
    def text(self) -> str:
        return ''.join(word.text for word in self.words)

    @property
    def line_id(self) -> LineId:
        return self.words[0].line_id

    @property
    def char_count(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class RunGeometry:
    """
    Aggregate box of a run and its per-character box table.

    ``char_boxes`` holds one entry per character of the run text: the first
    character of every OCR word carries that word's box, the following
    characters of the same word carry None.
    """
    bbox: BBox
    char_boxes: Tuple[Optional[BBox], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'bbox': self.bbox.to_dict(),
            'char_boxes': [box.to_dict() if box else None for box in self.char_boxes],
        }
