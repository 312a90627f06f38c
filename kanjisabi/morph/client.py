"""
Client of the morphological analysis server.

One websocket connection is shared by all calls. Requests carry an id and a
reader task hands every response to the call waiting for that id, so the
runs of a capture can be analysed concurrently.
"""

import asyncio
import itertools
from typing import Dict, List, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from kanjisabi.errors import AnalyzerUnavailableError, ProtocolError
from kanjisabi.morph.models import Morpheme
from kanjisabi.morph.protocol import FunctionName, Message, decode, encode
from kanjisabi.util.config.configuration import (Config, DEFAULT_CONNECT_ATTEMPTS, DEFAULT_CONNECT_INTERVAL,
                                                  DEFAULT_MORPH_SERVICE_ADDRESS, get_config, logger, parse_address)


class MorphServiceClient:
    def __init__(self, address: str = DEFAULT_MORPH_SERVICE_ADDRESS, timeout: float = 5.0,
                 connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
                 connect_interval: float = DEFAULT_CONNECT_INTERVAL):
        host, port = parse_address(address)
        if ':' in host:
            host = f"[{host}]"
        self.address = address
        self.uri = f"ws://{host}:{port}"
        self.timeout = timeout
        self.connect_attempts = connect_attempts
        self.connect_interval = connect_interval
        self._connection: Optional[ClientConnection] = None
        self._reader: Optional[asyncio.Task] = None
        self._pending: Dict[str, asyncio.Future] = {}
        self._ids = itertools.count(1)

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> 'MorphServiceClient':
        config = config or get_config()
        service = config.morph_service
        return cls(service.api_address, timeout=service.request_timeout,
                   connect_attempts=service.connect_attempts, connect_interval=service.connect_interval)

    @property
    def connected(self) -> bool:
        return self._connection is not None and self._reader is not None and not self._reader.done()

    async def connect(self):
        """
        Open the connection, retrying within the start-up budget.

        Raises:
            AnalyzerUnavailableError: if every attempt failed.
        """
        last_error: Optional[Exception] = None
        for attempt in range(1, self.connect_attempts + 1):
            try:
                self._connection = await connect(self.uri)
                break
            except (OSError, asyncio.TimeoutError, InvalidHandshake) as e:
                last_error = e
                logger.debug(f"Morph service at {self.uri} not ready (attempt {attempt}/{self.connect_attempts}): {e}")
            if attempt < self.connect_attempts:
                await asyncio.sleep(self.connect_interval)
        else:
            raise AnalyzerUnavailableError(self.address, self.connect_attempts, last_error)

        self._reader = asyncio.create_task(self._read_responses())
        logger.info(f"Connected to morph service at {self.uri}")

    async def close(self):
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> 'MorphServiceClient':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def _read_responses(self):
        try:
            async for raw in self._connection:
                try:
                    response = decode(raw)
                except ProtocolError as e:
                    logger.warning(f"Ignoring morph service message: {e}")
                    continue
                future = self._pending.pop(response.id, None)
                if future is None:
                    logger.debug(f"No request waiting for response {response.id}: {response.data}")
                elif not future.done():
                    future.set_result(response)
        except ConnectionClosed as e:
            logger.warning(f"Morph service connection closed: {e}")
        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(ConnectionError("Morph service connection closed"))
            self._pending.clear()

    async def call(self, function: FunctionName, **data) -> Message:
        """
        Send one request and wait for its response.

        Raises:
            ConnectionError: if there is no open connection.
            ProtocolError: if the server answered with an error.
            asyncio.TimeoutError: if no answer came in time.
        """
        if not self.connected:
            raise ConnectionError("Not connected to the morph service")

        request_id = str(next(self._ids))
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._connection.send(encode(Message(function=function.value, data=data, id=request_id)))
            response = await asyncio.wait_for(future, self.timeout)
        except ConnectionClosed as e:
            raise ConnectionError(f"Morph service connection closed: {e}") from e
        finally:
            self._pending.pop(request_id, None)

        if response.error:
            raise ProtocolError(response.error)
        return response

    async def dictionary(self) -> Optional[str]:
        try:
            response = await self.call(FunctionName.DICTIONARY)
        except (ConnectionError, ProtocolError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not query the morph service dictionary: {e}")
            return None
        return response.data.get('dictionary')

    async def analyze(self, text: str) -> List[Morpheme]:
        """Categorized morphemes of ``text``, or an empty list when the call fails."""
        try:
            response = await self.call(FunctionName.ANALYZE, sentence=text)
            return [Morpheme.from_dict(m) for m in response.data['morphemes']]
        except (ConnectionError, ProtocolError, asyncio.TimeoutError) as e:
            logger.warning(f"Morph service analysis of '{text}' failed: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unusable morph service response for '{text}': {e}")
        return []
