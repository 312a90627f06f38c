"""
Command-driven annotation session.

External triggers (a capture hotkey, the next-hint key, a config change) are
delivered as ``Command`` messages on a queue and handled one at a time by
``AnnotationSession.run``. A new capture cancels the capture still in flight.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from kanjisabi.morph.models import AnnotatedRun
from kanjisabi.ocr.models import OCRWord
from kanjisabi.ocr.tsv_parser import parse_tsv
from kanjisabi.pipeline.annotator import CapturePipeline
from kanjisabi.util.config.configuration import Config, logger, reload_config


class SessionCommand(Enum):
    CAPTURE = "capture"
    NEXT_HINT = "next_hint"
    RELOAD_CONFIG = "reload_config"
    QUIT = "quit"


@dataclass
class Command:
    command: SessionCommand
    data: Dict[str, Any] = field(default_factory=dict)


ResultsCallback = Callable[[List[AnnotatedRun]], None]
HintCallback = Callable[[Optional[AnnotatedRun]], None]


class AnnotationSession:
    def __init__(self, pipeline: CapturePipeline, on_results: Optional[ResultsCallback] = None,
                 on_hint: Optional[HintCallback] = None,
                 config_loader: Callable[[], Config] = reload_config):
        self.pipeline = pipeline
        self.on_results = on_results
        self.on_hint = on_hint
        self.config_loader = config_loader
        self.queue: asyncio.Queue = asyncio.Queue()
        self.results: List[AnnotatedRun] = []
        self.hint_index: Optional[int] = None
        self.current_task: Optional[asyncio.Task] = None
        self.running = False

    def submit(self, command: SessionCommand, **data):
        self.queue.put_nowait(Command(command, data))

    def capture(self, tsv: Optional[str] = None, words: Optional[Iterable[OCRWord]] = None):
        if words is not None:
            self.submit(SessionCommand.CAPTURE, words=list(words))
        else:
            self.submit(SessionCommand.CAPTURE, tsv=tsv or '')

    def next_hint(self):
        self.submit(SessionCommand.NEXT_HINT)

    def reload(self):
        self.submit(SessionCommand.RELOAD_CONFIG)

    def quit(self):
        self.submit(SessionCommand.QUIT)

    @property
    def current_hint(self) -> Optional[AnnotatedRun]:
        if self.hint_index is None or self.hint_index >= len(self.results):
            return None
        return self.results[self.hint_index]

    async def run(self):
        """Handle commands until ``quit``. The capture in flight at that point is awaited."""
        self.running = True
        try:
            while self.running:
                command = await self.queue.get()
                await self.dispatch(command)
            if self.current_task is not None:
                await asyncio.gather(self.current_task, return_exceptions=True)
        finally:
            await self._cancel_capture()
            self.running = False

    async def dispatch(self, command: Command):
        logger.debug(f"Session command: {command.command.value}")
        if command.command == SessionCommand.CAPTURE:
            await self._start_capture(command.data)
        elif command.command == SessionCommand.NEXT_HINT:
            self._next_hint()
        elif command.command == SessionCommand.RELOAD_CONFIG:
            self._reload_config()
        elif command.command == SessionCommand.QUIT:
            self.running = False

    async def _start_capture(self, data: Dict[str, Any]):
        await self._cancel_capture()
        words = data.get('words')
        if words is None:
            words = parse_tsv(data.get('tsv', ''))
        self.current_task = asyncio.create_task(self._capture(words))

    async def _cancel_capture(self):
        if self.current_task and not self.current_task.done():
            self.current_task.cancel()
            try:
                await self.current_task
            except asyncio.CancelledError:
                logger.debug("Previous capture was cancelled")

    async def _capture(self, words: List[OCRWord]):
        results = await self.pipeline.process(words)
        if results is not None:
            self.publish(results)

    def publish(self, results: List[AnnotatedRun]):
        self.results = results
        self.hint_index = None
        logger.info(f"Capture annotated {sum(r.is_annotated for r in results)}/{len(results)} runs")
        if self.on_results:
            self.on_results(results)

    def _next_hint(self):
        if not self.results:
            self.hint_index = None
        elif self.hint_index is None:
            self.hint_index = 0
        else:
            self.hint_index = (self.hint_index + 1) % len(self.results)
        if self.on_hint:
            self.on_hint(self.current_hint)

    def _reload_config(self):
        config = self.config_loader()
        self.pipeline.threshold = config.pipeline.confidence_threshold
        self.pipeline.strategy = config.pipeline.unanchored_strategy
        logger.info(f"Session settings reloaded (threshold {self.pipeline.threshold}, "
                    f"unanchored boxes: {self.pipeline.strategy.value})")
