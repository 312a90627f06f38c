"""
Morphological analysis server

Wraps a lindera tokenizer and categorizes every morpheme it returns. Clients
talk to it over a websocket with the messages of ``kanjisabi.morph.protocol``:

- ``dictionary`` answers ``{"dictionary": "ipadic" | "unidic"}``
- ``analyze`` with ``{"sentence": str}`` answers ``{"morphemes": [...]}``

Usage:
    kanjisabi-morph-server [--api-addr HOST:PORT] [--lindera-addr HOST:PORT]
                           [--dictionary auto|ipadic|unidic]
"""

import argparse
import asyncio
import sys
from typing import Optional, Set

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from kanjisabi.errors import AnalyzerUnavailableError, ProtocolError
from kanjisabi.morph.lindera_client import PROBE_SENTENCE, LinderaAnalyzer
from kanjisabi.morph.protocol import FunctionName, Message, decode, encode
from kanjisabi.morph.schema import schema_for
from kanjisabi.util.config.configuration import (Config, DEFAULT_CONNECT_ATTEMPTS, DEFAULT_CONNECT_INTERVAL,
                                                  DICTIONARY_AUTO, DICTIONARY_IPADIC, DICTIONARY_UNIDIC, INFO,
                                                  get_config, logger, parse_address)
from kanjisabi.util.logging_config import cleanup_old_logs, set_level


class MorphServer:
    def __init__(self, analyzer: LinderaAnalyzer, dictionary: str = DICTIONARY_AUTO,
                 connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
                 connect_interval: float = DEFAULT_CONNECT_INTERVAL):
        self.analyzer = analyzer
        self.connect_attempts = connect_attempts
        self.connect_interval = connect_interval
        self._dictionary: Optional[str] = None if dictionary == DICTIONARY_AUTO else dictionary
        self.server: Optional[Server] = None

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> 'MorphServer':
        config = config or get_config()
        return cls(
            LinderaAnalyzer.from_config(config),
            dictionary=config.morph_service.dictionary,
            connect_attempts=config.morph_service.connect_attempts,
            connect_interval=config.morph_service.connect_interval,
        )

    @property
    def port(self) -> Optional[int]:
        if self.server is None or not self.server.sockets:
            return None
        return self.server.sockets[0].getsockname()[1]

    def _remember_dictionary(self, probe) -> None:
        if self._dictionary is not None or not probe:
            return
        schema = schema_for(probe[0].tags)
        if schema is None:
            logger.warning(f"Tokenizer returned {len(probe[0].tags)} detail fields, dictionary unknown")
            return
        self._dictionary = schema.name
        logger.info(f"Tokenizer dictionary detected: {self._dictionary}")

    def wait_for_analyzer(self) -> None:
        """
        Block until the tokenizer answers, within the start-up retry budget.

        Raises:
            AnalyzerUnavailableError: if the budget is exhausted.
        """
        logger.info(f"Waiting for the tokenizer at {self.analyzer.address}...")
        probe = self.analyzer.wait_until_ready(self.connect_attempts, self.connect_interval)
        self._remember_dictionary(probe)

    async def dictionary(self) -> Optional[str]:
        if self._dictionary is None:
            probe = await self.analyzer.analyze(PROBE_SENTENCE)
            self._remember_dictionary(probe)
        return self._dictionary

    async def handle(self, request: Message) -> Message:
        """Answer one request. Never raises for a bad request, the reply carries the error."""
        try:
            function = FunctionName(request.function)
        except ValueError:
            return request.fail(f"Unknown function '{request.function}'")

        if function == FunctionName.DICTIONARY:
            dictionary = await self.dictionary()
            if dictionary is None:
                return request.fail("Could not determine the tokenizer dictionary")
            return request.reply(dictionary=dictionary)

        sentence = request.data.get('sentence')
        if not isinstance(sentence, str):
            return request.fail("analyze expects a 'sentence' string")
        morphemes = await self.analyzer.analyze(sentence)
        return request.reply(morphemes=[m.to_dict() for m in morphemes])

    async def _respond(self, websocket: ServerConnection, request: Message):
        response = await self.handle(request)
        try:
            await websocket.send(encode(response))
        except ConnectionClosed:
            logger.debug(f"Client went away before the reply to request {request.id}")

    async def handler(self, websocket: ServerConnection):
        """Serve one client. Requests of the same connection are answered concurrently."""
        logger.debug(f"Client connected: {websocket.remote_address}")
        pending: Set[asyncio.Task] = set()
        try:
            async for raw in websocket:
                try:
                    request = decode(raw)
                except ProtocolError as e:
                    logger.warning(f"Rejecting request: {e}")
                    await websocket.send(encode(Message(function='error', data={'error': str(e)})))
                    continue
                task = asyncio.create_task(self._respond(websocket, request))
                pending.add(task)
                task.add_done_callback(pending.discard)
        except ConnectionClosed:
            pass
        finally:
            for task in pending:
                task.cancel()
            logger.debug(f"Client disconnected: {websocket.remote_address}")

    async def start(self, host: str, port: int) -> Server:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.wait_for_analyzer)
        self.server = await serve(self.handler, host, port)
        logger.info(f"Morphological analysis server listening on ws://{host}:{self.port}")
        return self.server

    async def stop(self):
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

    async def run(self, host: str, port: int):
        await self.start(host, port)
        try:
            await self.server.wait_closed()
        finally:
            await self.stop()


def main(argv=None):
    config = get_config()

    parser = argparse.ArgumentParser(description='kanjisabi morphological analysis server')
    parser.add_argument('--api-addr', default=config.morph_service.api_address,
                        help='Address to listen on (HOST:PORT)')
    parser.add_argument('--lindera-addr', default=config.lindera.server_address,
                        help='Address of the lindera tokenizer server (HOST:PORT)')
    parser.add_argument('--dictionary', default=config.morph_service.dictionary,
                        choices=[DICTIONARY_AUTO, DICTIONARY_IPADIC, DICTIONARY_UNIDIC],
                        help='Dictionary the tokenizer runs, detected when auto')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    if args.debug or config.log_level != INFO:
        set_level('DEBUG' if args.debug else config.log_level)
    cleanup_old_logs()

    try:
        host, port = parse_address(args.api_addr)
        analyzer = LinderaAnalyzer(args.lindera_addr, timeout=config.lindera.timeout)
    except ValueError as e:
        parser.error(str(e))

    server = MorphServer(
        analyzer,
        dictionary=args.dictionary,
        connect_attempts=config.morph_service.connect_attempts,
        connect_interval=config.morph_service.connect_interval,
    )

    try:
        asyncio.run(server.run(host, port))
    except AnalyzerUnavailableError as e:
        logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == '__main__':
    main()
