import logging
import queue
import threading
import time
from collections import namedtuple
from concurrent.futures import Future
from typing import Callable, Optional

from environment.cell import location_from_dict

from .candidates import CandidatePool
from .errors import WorkerFailedError, WorkerTimeoutError
from .longest_path_base import LongestPathSolverBase, resolved_future
from .messages import FollowupTask, InitialTask, WorkerError, get_codec
from .worker import BACKEND_PROCESS, BACKENDS, create_result_queue, create_worker

logger = logging.getLogger(__name__)

DEFAULT_NUMBER_OF_THREADS = 4
DEFAULT_WORKER_TIMEOUT = 30.0
POLL_INTERVAL = 0.05

# Запис про одне відправлене завдання: initial/followup, індекс воркера, клітинка
DispatchRecord = namedtuple("DispatchRecord", ["kind", "worker_index", "start_cell"])


class ThreadedLongestPathSolver(LongestPathSolverBase):
    """
    Пошук, розподілений між N воркерами.

    Координатор (окремий потік) єдиний змінює множину кандидатів і найкраще
    рішення: отримує результат від воркера, відсікає кандидатів і відправляє
    тому ж воркеру наступну клітинку або зупиняє його. Результат готовий,
    коли зупинено всіх воркерів.
    """

    variant_name = "threaded"
    codec_name = "structured"

    def __init__(self, number_of_threads: int = DEFAULT_NUMBER_OF_THREADS, backend: str = BACKEND_PROCESS,
                 timeout: float = DEFAULT_WORKER_TIMEOUT, search_seed=None,
                 worker_factory: Optional[Callable] = None, mp_context=None):
        super().__init__(search_seed)
        if backend not in BACKENDS:
            raise ValueError(f"Unknown worker backend: {backend!r}")
        self.number_of_threads = number_of_threads
        self.backend = backend
        self.timeout = timeout
        self._worker_factory = worker_factory
        self._mp_context = mp_context
        self._codec = get_codec(self.codec_name)
        self._active_workers: set[int] = set()
        self._dispatch_started: dict[int, float] = {}
        self.dispatch_log: list[DispatchRecord] = []
        self.worker_durations: dict[int, list[float]] = {}
        self.terminated_workers = 0

    @property
    def number_of_threads(self) -> int:
        return self._number_of_threads

    @number_of_threads.setter
    def number_of_threads(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"Number of threads must be a positive integer, got {value!r}")
        self._number_of_threads = value

    @property
    def active_workers(self) -> int:
        return len(self._active_workers)

    def _reserve_seed_cells(self, candidates: list[dict], count: int) -> tuple[list[dict], list[dict]]:
        """Перші count кандидатів стають стартовими клітинками воркерів."""
        return candidates[:count], candidates[count:]

    def solve(self, maze, cancel_token=None) -> Future:
        super().solve(maze, cancel_token)
        self.dispatch_log = []
        self.terminated_workers = 0
        self.worker_durations = {}
        self._active_workers = set()
        self._dispatch_started = {}

        candidates = self._determine_potential_entry_cells()
        if not candidates:
            logger.warning("Maze has no potential entry cells, nothing to solve")
            return resolved_future(self._solution.copy())

        seeds, remaining = self._reserve_seed_cells(candidates, min(self.number_of_threads, len(candidates)))
        self._candidates = CandidatePool(remaining)

        future = Future()
        future.set_running_or_notify_cancel()
        coordinator = threading.Thread(
            target=self._run_coordinator,
            args=(seeds, future, cancel_token),
            name=f"longest-path-coordinator-{self.variant_name}",
            daemon=True,
        )
        coordinator.start()
        return future

    # --- Керування воркерами ---
    def _create_worker(self, index: int, results):
        if self._worker_factory is not None:
            return self._worker_factory(index, results, self.codec_name, self.search_seed)
        return create_worker(self.backend, index, results, self.codec_name, self.search_seed, self._mp_context)

    def _dispatch(self, worker, task):
        kind = "initial" if isinstance(task, InitialTask) else "followup"
        self.dispatch_log.append(DispatchRecord(kind, worker.index, task.start_cell))
        self._dispatch_started[worker.index] = time.perf_counter()
        logger.debug("Dispatching %s task %s to worker %d", kind, tuple(task.start_cell), worker.index)
        worker.send(self._codec.encode(task))

    def _stop_worker(self, worker):
        if worker.index not in self._active_workers:
            return
        self._active_workers.discard(worker.index)
        worker.terminate()
        self.terminated_workers += 1
        logger.debug("Worker %d terminated, %d still active", worker.index, len(self._active_workers))

    def _stop_all_workers(self, workers: dict):
        for worker in workers.values():
            self._stop_worker(worker)

    # --- Координатор ---
    def _run_coordinator(self, seeds: list[dict], future: Future, cancel_token):
        started = time.perf_counter()
        results = create_result_queue(self.backend, self._mp_context)
        workers = {}
        try:
            for index, seed_cell in enumerate(seeds):
                worker = self._create_worker(index, results)
                workers[index] = worker
                self._active_workers.add(index)
                self._dispatch(worker, InitialTask(location_from_dict(seed_cell["location"]), self._maze_cells))
            self._drain_results(results, workers, cancel_token)
        except Exception as exc:
            logger.error("Longest path search (%s) failed: %s", self.variant_name, exc)
            self._stop_all_workers(workers)
            self.overall_duration = time.perf_counter() - started
            future.set_exception(exc)
            return

        self.overall_duration = time.perf_counter() - started
        logger.info("Longest path (%s, %d workers): length %d after %d discoveries in %.3fs",
                    self.variant_name, len(workers), self._solution.length,
                    len(self.discovery_durations), self.overall_duration)
        future.set_result(self._solution.copy())

    def _drain_results(self, results, workers: dict, cancel_token):
        last_message = time.monotonic()
        while self._active_workers:
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.warning("Longest path search cancelled, terminating %d worker(s)", len(self._active_workers))
                self._stop_all_workers(workers)
                self._solution.cancelled = True
                return
            try:
                worker_index, payload = results.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                if time.monotonic() - last_message > self.timeout:
                    raise WorkerTimeoutError(self.timeout, len(self._active_workers))
                continue
            last_message = time.monotonic()

            message = self._codec.decode(payload)
            if isinstance(message, WorkerError):
                raise WorkerFailedError(worker_index, message.message, message.details)
            self._on_worker_result(workers[worker_index], message)

    def _on_worker_result(self, worker, result):
        started = self._dispatch_started.pop(worker.index, None)
        if started is not None:
            duration = time.perf_counter() - started
            self.discovery_durations.append(duration)
            self.worker_durations.setdefault(worker.index, []).append(duration)

        if self._accept_solution(result.to_solution()):
            logger.debug("Worker %d found a longer path (%d cells) from %s",
                         worker.index, len(result.path), tuple(result.from_location))

        pruned = self._prune_potential_entry_cells(result.path)
        if pruned:
            logger.debug("Pruned %d candidate(s), %d left", pruned, len(self._candidates))

        if not self._candidates:
            self._stop_worker(worker)
            return
        # Лабіринт повторно не надсилається, воркер зберіг його з першого завдання
        self._dispatch(worker, FollowupTask(self._shift_potential_entry_cell()))
