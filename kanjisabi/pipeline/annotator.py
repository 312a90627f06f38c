"""
Capture pipeline: OCR words to annotated runs.

Words are segmented into runs, every run is analysed concurrently, the
analysis is checked against the OCR text and the morphemes are aligned back
onto the run's geometry. A capture always produces a list of runs; failed or
inconsistent analyses leave a run with its box and no morphemes.
"""

import asyncio
from dataclasses import replace
from typing import Callable, Iterable, List, Optional, Sequence, Union

from kanjisabi.morph.categorizer import categorize
from kanjisabi.morph.client import MorphServiceClient
from kanjisabi.morph.lindera_client import LinderaAnalyzer
from kanjisabi.morph.models import AnnotatedRun, Morpheme
from kanjisabi.ocr.geometry import aggregate_run, align_morphemes
from kanjisabi.ocr.jpn_script import is_japanese_text
from kanjisabi.ocr.models import OCRWord, Run
from kanjisabi.ocr.segmentation import segment_runs
from kanjisabi.ocr.tsv_parser import parse_tsv
from kanjisabi.util.config.configuration import (Config, DEFAULT_CONFIDENCE_THRESHOLD, UnanchoredBoxStrategy,
                                                  get_config, logger)

Analyzer = Union[LinderaAnalyzer, MorphServiceClient]


def is_consistent(text: str, morphemes: Sequence[Morpheme]) -> bool:
    """True when the morphemes account for exactly the characters of ``text``."""
    return len(text) == sum(m.char_count for m in morphemes)


async def annotate_run(run: Run, analyzer, strategy: UnanchoredBoxStrategy = UnanchoredBoxStrategy.INTERPOLATE) -> AnnotatedRun:
    geometry = aggregate_run(run)
    text = run.text

    morphemes = await analyzer.analyze(text)
    if not morphemes:
        return AnnotatedRun(text, geometry.bbox)
    if not is_consistent(text, morphemes):
        logger.info(
            f"Inconsistent morphological analysis results, discarding them: "
            f"'{text}' ({len(text)} chars) vs {[m.text for m in morphemes]}")
        return AnnotatedRun(text, geometry.bbox)

    morphemes = [m if m.category is not None else replace(m, category=categorize(m.tags))
                 for m in morphemes]
    return AnnotatedRun(text, geometry.bbox, align_morphemes(geometry, morphemes, strategy))


class CapturePipeline:
    """
    Annotates the words of one capture at a time.

    Every call to ``process`` takes a new generation number. When a newer
    capture started while a call was waiting for the analyzer, its results
    are stale and ``process`` returns None instead.
    """

    def __init__(self, analyzer, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
                 strategy: UnanchoredBoxStrategy = UnanchoredBoxStrategy.INTERPOLATE,
                 discriminator: Callable[[str], bool] = is_japanese_text):
        self.analyzer = analyzer
        self.threshold = threshold
        self.strategy = strategy
        self.discriminator = discriminator
        self._current_generation = 0

    @classmethod
    def from_config(cls, analyzer, config: Optional[Config] = None) -> 'CapturePipeline':
        config = config or get_config()
        return cls(analyzer, threshold=config.pipeline.confidence_threshold,
                   strategy=config.pipeline.unanchored_strategy)

    @property
    def current_generation(self) -> int:
        return self._current_generation

    def is_current(self, generation: int) -> bool:
        return generation == self._current_generation

    async def annotate(self, words: Iterable[OCRWord]) -> List[AnnotatedRun]:
        runs = segment_runs(words, self.threshold, self.discriminator)
        logger.debug(f"Annotating {len(runs)} runs: {[run.text for run in runs]}")
        return list(await asyncio.gather(*(annotate_run(run, self.analyzer, self.strategy) for run in runs)))

    async def process(self, words: Iterable[OCRWord]) -> Optional[List[AnnotatedRun]]:
        self._current_generation += 1
        generation = self._current_generation

        results = await self.annotate(words)

        if not self.is_current(generation):
            logger.debug(f"Discarding outdated capture (generation {generation}, current {self._current_generation})")
            return None
        return results

    async def process_tsv(self, tsv: str) -> Optional[List[AnnotatedRun]]:
        return await self.process(parse_tsv(tsv))


async def open_analyzer(config: Optional[Config] = None) -> Analyzer:
    """
    The analyzer the configuration asks for: the morph service when
    ``pipeline.use_morph_service`` is set, the lindera server otherwise.

    Raises:
        AnalyzerUnavailableError: if the morph service cannot be reached.
    """
    config = config or get_config()
    if config.pipeline.use_morph_service:
        client = MorphServiceClient.from_config(config)
        await client.connect()
        return client
    return LinderaAnalyzer.from_config(config)


async def close_analyzer(analyzer):
    if isinstance(analyzer, MorphServiceClient):
        await analyzer.close()
