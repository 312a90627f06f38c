"""
Lindera tokenizer client

Talks to a lindera server over HTTP: the sentence is POSTed as UTF-8 text to
``/tokenize`` and the response is a JSON array of ``{"text"?, "detail": [...]}``
records, one per morpheme.
"""

import asyncio
import time
from dataclasses import replace
from typing import List, Optional

import requests

from kanjisabi.errors import AnalyzerUnavailableError, ProtocolError
from kanjisabi.morph.categorizer import categorize
from kanjisabi.morph.models import Morpheme
from kanjisabi.util.config.configuration import (Config, DEFAULT_CONNECT_ATTEMPTS, DEFAULT_CONNECT_INTERVAL,
                                                  DEFAULT_LINDERA_ADDRESS, get_config, logger, parse_address)

# Tokenized to probe the server and to tell which dictionary it runs
PROBE_SENTENCE = '。'


class LinderaAnalyzer:
    """
    Morphological analyzer backed by a lindera server.

    ``analyze`` never raises: a failed call is logged and yields no
    morphemes. ``tokenize`` is the raising variant.
    """

    def __init__(self, address: str = DEFAULT_LINDERA_ADDRESS, timeout: float = 5.0,
                 categorize_morphemes: bool = True):
        parse_address(address)
        self.address = address
        self.url = f"http://{address}/tokenize"
        self.timeout = timeout
        self.categorize_morphemes = categorize_morphemes

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> 'LinderaAnalyzer':
        config = config or get_config()
        return cls(config.lindera.server_address, timeout=config.lindera.timeout)

    def tokenize(self, text: str) -> List[Morpheme]:
        """
        Tokenize ``text``.

        Raises:
            requests.RequestException: if the server cannot be reached.
            ProtocolError: if the response is not a list of morpheme records.
        """
        response = requests.post(
            self.url,
            data=text.encode('utf-8'),
            headers={'Content-Type': 'text/plain; charset=utf-8'},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            raise ProtocolError(f"Tokenizer returned status {response.status_code}")

        try:
            records = response.json()
        except ValueError as e:
            raise ProtocolError(f"Tokenizer response is not JSON: {e}") from e
        if not isinstance(records, list):
            raise ProtocolError(f"Expected a list of morphemes, got {type(records).__name__}")

        try:
            morphemes = [Morpheme.from_record(record) for record in records]
        except ValueError as e:
            raise ProtocolError(str(e)) from e

        if self.categorize_morphemes:
            morphemes = [replace(m, category=categorize(m.tags)) for m in morphemes]
        return morphemes

    def analyze_sync(self, text: str) -> List[Morpheme]:
        try:
            morphemes = self.tokenize(text)
        except requests.RequestException as e:
            logger.warning(f"Tokenizer at {self.address} unreachable: {e}")
            return []
        except ProtocolError as e:
            logger.warning(f"Unusable tokenizer response for '{text}': {e}")
            return []
        logger.debug(f"Tokenized '{text}' into {[m.text for m in morphemes]}")
        return morphemes

    async def analyze(self, text: str) -> List[Morpheme]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.analyze_sync, text)

    def wait_until_ready(self, attempts: int = DEFAULT_CONNECT_ATTEMPTS,
                         interval: float = DEFAULT_CONNECT_INTERVAL) -> List[Morpheme]:
        """
        Probe the server until it answers, at most ``attempts`` times,
        ``interval`` seconds apart.

        Returns:
            The morphemes of the probe sentence.

        Raises:
            AnalyzerUnavailableError: if no attempt succeeded.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            try:
                return self.tokenize(PROBE_SENTENCE)
            except (requests.RequestException, ProtocolError) as e:
                last_error = e
                logger.debug(f"Tokenizer at {self.address} not ready (attempt {attempt}/{attempts}): {e}")
            if attempt < attempts:
                time.sleep(interval)
        raise AnalyzerUnavailableError(self.address, attempts, last_error)
