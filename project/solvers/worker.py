import logging
import multiprocessing
import queue
import threading
import traceback
from typing import Optional

from .errors import ProtocolError
from .messages import FollowupTask, InitialTask, SolveResult, WorkerError, get_codec
from .search import find_longest_path_for_cell, make_search_random

logger = logging.getLogger(__name__)

BACKEND_PROCESS = "process"
BACKEND_THREAD = "thread"
BACKENDS = (BACKEND_PROCESS, BACKEND_THREAD)

TERMINATE_JOIN_TIMEOUT = 1.0


class SolverSession:
    """
    Стан одного воркера: знімок лабіринту з першого завдання
    зберігається на весь час життя воркера.
    """

    def __init__(self, search_seed=None):
        self.search_seed = search_seed
        self.maze_cells: Optional[list] = None
        self.tasks_handled = 0

    def handle(self, task) -> SolveResult:
        if isinstance(task, InitialTask):
            self.maze_cells = task.maze
        elif isinstance(task, FollowupTask):
            if self.maze_cells is None:
                raise ProtocolError("Follow-up task received before the initial task")
        else:
            raise ProtocolError(f"Unexpected task type: {type(task).__name__}")

        rng = make_search_random(self.search_seed, task.start_cell)
        solution = find_longest_path_for_cell(self.maze_cells, task.start_cell, rng)
        self.tasks_handled += 1
        return SolveResult.from_solution(solution)


def worker_main(worker_index: int, inbox, outbox, codec_name: str, search_seed=None):
    """Цикл воркера: завдання з inbox, результат у спільну чергу outbox. None - зупинка."""
    codec = get_codec(codec_name)
    session = SolverSession(search_seed)
    while True:
        payload = inbox.get()
        if payload is None:
            break
        try:
            result = session.handle(codec.decode(payload))
        except Exception as exc:
            result = WorkerError(f"{type(exc).__name__}: {exc}", traceback.format_exc())
        outbox.put((worker_index, codec.encode(result)))
    logger.debug("Worker %d stopped after %d task(s)", worker_index, session.tasks_handled)


class _PipeInbox:
    """Читання завдань з кінця Pipe; закритий канал означає зупинку."""

    def __init__(self, connection, binary: bool):
        self._connection = connection
        self._binary = binary

    def get(self):
        try:
            if self._binary:
                # Порожній буфер - сигнал зупинки
                return self._connection.recv_bytes() or None
            return self._connection.recv()
        except (EOFError, OSError):
            return None


def _process_entry(worker_index, connection, outbox, codec_name, search_seed):
    binary = codec_name != "structured"
    worker_main(worker_index, _PipeInbox(connection, binary), outbox, codec_name, search_seed)
    connection.close()


class ThreadWorker:
    """Воркер у потоці цього процесу."""

    def __init__(self, index: int, results, codec_name: str, search_seed=None):
        self.index = index
        self._inbox = queue.Queue()
        self._thread = threading.Thread(
            target=worker_main,
            args=(index, self._inbox, results, codec_name, search_seed),
            name=f"longest-path-worker-{index}",
            daemon=True,
        )
        self._thread.start()

    def send(self, payload):
        self._inbox.put(payload)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def terminate(self):
        self._inbox.put(None)
        if self._thread is threading.current_thread():
            return
        self._thread.join(TERMINATE_JOIN_TIMEOUT)
        if self._thread.is_alive():
            # Потік не можна примусово зупинити; він завершиться після поточного пошуку
            logger.warning("Worker %d is still busy after %.1fs, leaving its thread behind",
                           self.index, TERMINATE_JOIN_TIMEOUT)


class ProcessWorker:
    """Воркер в окремому процесі; завдання йдуть через Pipe."""

    def __init__(self, index: int, results, codec_name: str, search_seed=None, context=None):
        context = context or multiprocessing.get_context()
        self.index = index
        self._binary = codec_name != "structured"
        self._connection, child_connection = context.Pipe()
        self._process = context.Process(
            target=_process_entry,
            args=(index, child_connection, results, codec_name, search_seed),
            name=f"longest-path-worker-{index}",
            daemon=True,
        )
        self._process.start()
        child_connection.close()

    def send(self, payload):
        if self._binary:
            self._connection.send_bytes(payload)
        else:
            self._connection.send(payload)

    def is_alive(self) -> bool:
        return self._process.is_alive()

    def terminate(self):
        # При fork дочірні процеси успадковують цей кінець Pipe, тож EOF може не настати
        try:
            if self._binary:
                self._connection.send_bytes(b"")
            else:
                self._connection.send(None)
        except OSError as exc:
            logger.debug("Worker %d stop message not delivered: %s", self.index, exc)
        self._connection.close()
        self._process.join(TERMINATE_JOIN_TIMEOUT)
        if self._process.is_alive():
            logger.warning("Worker %d did not stop in time, killing it", self.index)
            self._process.terminate()
            self._process.join(TERMINATE_JOIN_TIMEOUT)


def create_result_queue(backend: str, context=None):
    if backend == BACKEND_THREAD:
        return queue.Queue()
    if backend == BACKEND_PROCESS:
        return (context or multiprocessing.get_context()).Queue()
    raise ValueError(f"Unknown worker backend: {backend!r}")


def create_worker(backend: str, index: int, results, codec_name: str, search_seed=None, context=None):
    if backend == BACKEND_THREAD:
        return ThreadWorker(index, results, codec_name, search_seed)
    if backend == BACKEND_PROCESS:
        return ProcessWorker(index, results, codec_name, search_seed, context)
    raise ValueError(f"Unknown worker backend: {backend!r}")
