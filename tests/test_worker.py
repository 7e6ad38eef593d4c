import logging
import queue
import threading

import pytest

from conftest import build_cells
from environment.cell import Location
from solvers.errors import ProtocolError
from solvers.messages import FollowupTask, InitialTask, SolveResult, WorkerError, get_codec
from solvers.solution import Solution
from solvers import worker as worker_module
from solvers.worker import SolverSession, ThreadWorker, create_result_queue, create_worker, worker_main

CELLS = build_cells(3, 1, [((0, 0), (1, 0)), ((1, 0), (2, 0))])


def test_followup_before_initial_is_protocol_error():
    session = SolverSession()
    with pytest.raises(ProtocolError):
        session.handle(FollowupTask(Location(0, 0)))


def test_unknown_task_is_protocol_error():
    with pytest.raises(ProtocolError):
        SolverSession().handle("solve please")


def test_session_keeps_maze_between_tasks():
    session = SolverSession(search_seed=1)
    first = session.handle(InitialTask(Location(0, 0), CELLS))
    second = session.handle(FollowupTask(Location(2, 0)))
    assert session.tasks_handled == 2
    assert len(first.path) == 3 and first.to_cell["id"] == "2_0"
    assert len(second.path) == 3 and second.to_cell["id"] == "0_0"
    assert second.from_location == Location(2, 0)


@pytest.mark.parametrize("codec_name", ["structured", "json_bytes"])
def test_worker_main_reports_results_and_errors(codec_name):
    codec = get_codec(codec_name)
    inbox, outbox = queue.Queue(), queue.Queue()
    inbox.put(codec.encode(FollowupTask(Location(0, 0))))
    inbox.put(codec.encode(InitialTask(Location(0, 0), CELLS)))
    inbox.put(None)

    worker_main(7, inbox, outbox, codec_name)

    index, payload = outbox.get_nowait()
    error = codec.decode(payload)
    assert index == 7
    assert isinstance(error, WorkerError)
    assert "ProtocolError" in error.message

    index, payload = outbox.get_nowait()
    result = codec.decode(payload)
    assert isinstance(result, SolveResult)
    assert len(result.path) == 3
    assert outbox.empty()


def test_thread_worker_stops_on_terminate():
    results = create_result_queue("thread")
    worker = create_worker("thread", 0, results, "structured")
    assert isinstance(worker, ThreadWorker)
    worker.send(InitialTask(Location(2, 0), CELLS))
    index, result = results.get(timeout=5)
    assert index == 0 and result.to_cell["id"] == "0_0"
    worker.terminate()
    assert not worker.is_alive()


def test_busy_thread_worker_is_reported_on_terminate(monkeypatch, caplog):
    release = threading.Event()
    started = threading.Event()

    def blocking_search(maze_cells, start_location, rng=None):
        started.set()
        release.wait(5)
        return Solution(start_location, None, [])

    monkeypatch.setattr(worker_module, "find_longest_path_for_cell", blocking_search)
    monkeypatch.setattr(worker_module, "TERMINATE_JOIN_TIMEOUT", 0.05)
    results = create_result_queue("thread")
    worker = ThreadWorker(3, results, "structured")
    worker.send(InitialTask(Location(0, 0), CELLS))
    assert started.wait(5)

    with caplog.at_level(logging.WARNING, logger="solvers.worker"):
        worker.terminate()
    assert worker.is_alive()
    assert "Worker 3 is still busy" in caplog.text

    release.set()
    worker._thread.join(5)
    assert not worker.is_alive()


def test_unknown_backend():
    with pytest.raises(ValueError):
        create_result_queue("cluster")
    with pytest.raises(ValueError):
        create_worker("cluster", 0, queue.Queue(), "structured")
