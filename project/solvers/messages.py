"""
Повідомлення між координатором і воркерами та їх кодування.

InitialTask несе повний знімок лабіринту, FollowupTask - лише нову стартову
клітинку: воркер використовує лабіринт, збережений з першого повідомлення.
"""
import json
from dataclasses import dataclass, field
from typing import Optional

from environment.cell import Location, location_from_dict, location_to_dict

from .solution import Solution

MESSAGE_INITIAL = "initial"
MESSAGE_FOLLOWUP = "followup"
MESSAGE_RESULT = "result"
MESSAGE_ERROR = "error"


@dataclass
class InitialTask:
    start_cell: Location
    maze: list

    def to_dict(self) -> dict:
        return {"type": MESSAGE_INITIAL, "start_cell": location_to_dict(self.start_cell), "maze": self.maze}


@dataclass
class FollowupTask:
    start_cell: Location

    def to_dict(self) -> dict:
        return {"type": MESSAGE_FOLLOWUP, "start_cell": location_to_dict(self.start_cell)}


@dataclass
class SolveResult:
    from_location: Location
    to_cell: Optional[dict] = None
    path: list = field(default_factory=list)

    @classmethod
    def from_solution(cls, solution: Solution) -> 'SolveResult':
        return cls(solution.from_location, solution.to_cell, solution.path)

    def to_solution(self) -> Solution:
        return Solution(self.from_location, self.to_cell, self.path)

    def to_dict(self) -> dict:
        return {
            "type": MESSAGE_RESULT,
            "from_location": location_to_dict(self.from_location),
            "to_cell": self.to_cell,
            "path": self.path,
        }


@dataclass
class WorkerError:
    message: str
    details: str = ""

    def to_dict(self) -> dict:
        return {"type": MESSAGE_ERROR, "message": self.message, "details": self.details}


def message_from_dict(data: dict):
    """Відновлює типізоване повідомлення зі словника."""
    message_type = data.get("type")
    if message_type == MESSAGE_INITIAL:
        return InitialTask(location_from_dict(data["start_cell"]), data["maze"])
    if message_type == MESSAGE_FOLLOWUP:
        return FollowupTask(location_from_dict(data["start_cell"]))
    if message_type == MESSAGE_RESULT:
        return SolveResult(location_from_dict(data["from_location"]), data.get("to_cell"), data.get("path", []))
    if message_type == MESSAGE_ERROR:
        return WorkerError(data.get("message", ""), data.get("details", ""))
    raise ValueError(f"Unknown message type: {message_type!r}")


class StructuredCodec:
    """Об'єкти повідомлень передаються як є (копіюються черговою механікою)."""

    name = "structured"

    def encode(self, message):
        return message

    def decode(self, payload):
        return payload


class JsonBytesCodec:
    """Повідомлення як UTF-8 JSON у буфері байтів."""

    name = "json_bytes"
    encoding = "utf-8"

    def encode(self, message) -> bytes:
        return json.dumps(message.to_dict(), separators=(",", ":")).encode(self.encoding)

    def decode(self, payload: bytes):
        return message_from_dict(json.loads(bytes(payload).decode(self.encoding)))


CODECS = {
    StructuredCodec.name: StructuredCodec,
    JsonBytesCodec.name: JsonBytesCodec,
}


def get_codec(name: str):
    try:
        return CODECS[name]()
    except KeyError:
        raise ValueError(f"Unknown message codec: {name!r}") from None
