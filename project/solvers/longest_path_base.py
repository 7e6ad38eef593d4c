import threading
from concurrent.futures import Future

from .candidates import CandidatePool, determine_potential_entry_cells
from .solution import Solution


class CancellationToken:
    """Прапорець скасування, який перевіряють між кроками пошуку."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def resolved_future(value) -> Future:
    future = Future()
    future.set_running_or_notify_cancel()
    future.set_result(value)
    return future


class LongestPathSolverBase:
    """
    Спільний контракт варіантів пошуку найдовшого шляху:
    вибір кандидатів, відсікання та поточне найкраще рішення.
    """

    variant_name = "base"

    def __init__(self, search_seed=None):
        self.search_seed = search_seed
        self._maze_cells: list = []
        self._candidates = CandidatePool()
        self._solution = Solution.empty()
        self.discovery_durations: list[float] = []
        self.overall_duration = None

    @property
    def maze_cells(self) -> list:
        return self._maze_cells

    @property
    def solution(self) -> Solution:
        return self._solution

    def solve(self, maze, cancel_token=None):
        """Зберігає знімок лабіринту, скидає рішення та дані про час."""
        if hasattr(maze, "get_serializable_maze"):
            self._maze_cells = maze.get_serializable_maze()
        else:
            self._maze_cells = maze
        self._solution = Solution.empty()
        self._candidates = CandidatePool()
        self._clear_performance_data()

    def _clear_performance_data(self):
        self.discovery_durations = []
        self.overall_duration = None

    def _determine_potential_entry_cells(self) -> list[dict]:
        return determine_potential_entry_cells(self._maze_cells)

    def _prune_potential_entry_cells(self, path_cells) -> int:
        return self._candidates.prune(path_cells)

    def _shift_potential_entry_cell(self):
        return self._candidates.shift_location()

    def _accept_solution(self, candidate: Solution) -> bool:
        """Нове рішення замінює поточне лише якщо строго довше."""
        if candidate.is_longer_than(self._solution):
            self._solution = candidate.copy()
            return True
        return False
