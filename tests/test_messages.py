import json

import pytest

from conftest import build_cells
from environment.cell import Location
from solvers.messages import (
    FollowupTask, InitialTask, JsonBytesCodec, SolveResult, StructuredCodec, WorkerError,
    get_codec, message_from_dict,
)
from solvers.solution import Solution


def test_json_bytes_codec_produces_utf8_json():
    codec = JsonBytesCodec()
    payload = codec.encode(FollowupTask(Location(3, 4)))
    assert isinstance(payload, bytes)
    assert json.loads(payload.decode("utf-8")) == {"type": "followup", "start_cell": {"column": 3, "row": 4}}


def test_json_bytes_codec_carries_maze_snapshot():
    cells = build_cells(2, 2, [((0, 0), (1, 0)), ((1, 0), (1, 1)), ((1, 1), (0, 1))])
    codec = get_codec("json_bytes")
    decoded = codec.decode(bytearray(codec.encode(InitialTask(Location(0, 0), cells))))
    assert isinstance(decoded, InitialTask)
    assert decoded.start_cell == Location(0, 0)
    assert decoded.maze == cells


def test_result_and_error_decode_to_typed_messages():
    codec = JsonBytesCodec()
    path = [{"id": "0_0"}, {"id": "1_0"}]
    result = codec.decode(codec.encode(SolveResult(Location(0, 0), path[-1], path)))
    assert isinstance(result, SolveResult)
    solution = result.to_solution()
    assert isinstance(solution, Solution)
    assert solution.length == 2 and solution.to_cell == {"id": "1_0"}

    error = codec.decode(codec.encode(WorkerError("boom", "trace")))
    assert error == WorkerError("boom", "trace")


def test_structured_codec_passes_objects_through():
    codec = get_codec("structured")
    task = FollowupTask(Location(1, 1))
    assert isinstance(codec, StructuredCodec)
    assert codec.decode(codec.encode(task)) is task


def test_unknown_codec():
    with pytest.raises(ValueError):
        get_codec("protobuf")


def test_unknown_message_type():
    with pytest.raises(ValueError):
        message_from_dict({"type": "shutdown"})
