"""
Wire format of the morphological analysis service.

Every request and response is one JSON text frame shaped like
``{"function": str, "data": {...}, "id": str | null}``. A response carries
the id and function of its request. Failures carry ``{"error": str}`` in
``data``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from dataclasses_json import Undefined, dataclass_json
from dataclasses_json.undefined import UndefinedParameterError

from kanjisabi.errors import ProtocolError


class FunctionName(Enum):
    DICTIONARY = "dictionary"
    ANALYZE = "analyze"


@dataclass_json(undefined=Undefined.RAISE)
@dataclass
class Message:
    function: str
    data: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @property
    def error(self) -> Optional[str]:
        return self.data.get('error')

    def reply(self, **data) -> 'Message':
        return Message(function=self.function, data=data, id=self.id)

    def fail(self, error: str) -> 'Message':
        return self.reply(error=error)


def decode(raw) -> Message:
    """
    Parse one frame.

    Raises:
        ProtocolError: if the frame is not a valid message.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode('utf-8')
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Message is not UTF-8: {e}") from e
    try:
        message = Message.from_json(raw)
    except (ValueError, KeyError, TypeError, AttributeError, UndefinedParameterError) as e:
        raise ProtocolError(f"Malformed message: {e}") from e
    if not isinstance(message.function, str) or not isinstance(message.data, dict):
        raise ProtocolError(f"Malformed message: {raw!r}")
    return message


def encode(message: Message) -> str:
    return message.to_json(ensure_ascii=False)
