import logging
import time
from concurrent.futures import Future

from .candidates import CandidatePool
from .longest_path_base import LongestPathSolverBase
from .search import find_longest_path_for_cell, make_search_random

logger = logging.getLogger(__name__)


class LongestPathSolver(LongestPathSolverBase):
    """Однопотоковий пошук: кандидати обробляються по черзі з відсіканням після кожного."""

    variant_name = "single"

    def solve(self, maze, cancel_token=None) -> Future:
        super().solve(maze, cancel_token)
        future = Future()
        future.set_running_or_notify_cancel()
        self._candidates = CandidatePool(self._determine_potential_entry_cells())
        try:
            self._solve_maze(cancel_token)
        except Exception as exc:
            logger.error("Single-threaded longest path search failed: %s", exc)
            future.set_exception(exc)
            return future
        future.set_result(self._solution.copy())
        return future

    def _get_longest_path_for_cell(self, start_location):
        started = time.perf_counter()
        rng = make_search_random(self.search_seed, start_location)
        solution = find_longest_path_for_cell(self._maze_cells, start_location, rng)
        self.discovery_durations.append(time.perf_counter() - started)
        # Клітинки шляху з двома сусідами вже не почнуть довший шлях
        self._prune_potential_entry_cells(solution.path)
        return solution

    def _solve_maze(self, cancel_token):
        started = time.perf_counter()
        while self._candidates:
            if cancel_token is not None and cancel_token.is_cancelled:
                logger.warning("Longest path search cancelled with %d candidate(s) left", len(self._candidates))
                self._solution.cancelled = True
                break
            start_location = self._shift_potential_entry_cell()
            self._accept_solution(self._get_longest_path_for_cell(start_location))
        self.overall_duration = time.perf_counter() - started
        logger.info("Longest path (%s): length %d after %d discoveries in %.3fs",
                    self.variant_name, self._solution.length,
                    len(self.discovery_durations), self.overall_duration)
