import logging
import random
from collections import namedtuple
from typing import Callable, Optional

from .cell import Cell, Location, SIDE_BOTTOM, SIDE_LEFT, SIDE_RIGHT, SIDE_TOP
from .errors import MazeGenerationError

logger = logging.getLogger(__name__)

STATE_DISCOVERY = "discovery"
STATE_BACKTRACK = "backtrack"

# Подія одного кроку генерації для візуалізатора
StepEvent = namedtuple("StepEvent", ["cell", "state", "walls"])


class Maze:
    """
    Генерація ідеального лабіринту (рандомізований DFS зі стеком)
    та визначення входу/виходу через пошук найдовшого шляху.
    """

    def __init__(self, columns: int = 5, rows: int = 5, seed=None, solver=None,
                 solve_timeout: Optional[float] = None):
        self._columns = columns
        self._rows = rows
        self._fixed_seed = seed
        self.seed = seed
        self._solver = solver
        self._solve_timeout = solve_timeout
        self._random = random.Random(seed)
        self._cells: list[list[Cell]] = []
        self._entry_cell: Optional[Cell] = None
        self._exit_cell: Optional[Cell] = None
        self._longest_path = None
        self._step_listeners: list[Callable[[StepEvent], None]] = []
        self.step_count = 0

    # --- Властивості ---
    @property
    def cells(self) -> list[list[Cell]]:
        return self._cells

    @property
    def columns(self) -> int:
        return self._columns

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def entry_cell(self) -> Optional[Cell]:
        return self._entry_cell

    @property
    def exit_cell(self) -> Optional[Cell]:
        return self._exit_cell

    @property
    def longest_path(self):
        """Рішення, за яким визначено вхід і вихід."""
        return self._longest_path

    @property
    def solver(self):
        return self._solver

    @solver.setter
    def solver(self, value):
        self._solver = value

    # --- Підписки на події ---
    def on_step_taken(self, callback: Callable[[StepEvent], None]) -> Callable[[StepEvent], None]:
        """Реєструє слухача кроків генерації. Виклики синхронні, у порядку реєстрації."""
        self._step_listeners.append(callback)
        return callback

    def remove_step_listener(self, callback: Callable[[StepEvent], None]):
        if callback in self._step_listeners:
            self._step_listeners.remove(callback)

    def _dispatch_step_taken(self, cell: Cell, state: str):
        self.step_count += 1
        event = StepEvent(cell, state, cell.walls)
        for listener in list(self._step_listeners):
            listener(event)

    # --- Сітка ---
    def _create_cell(self, column: int, row: int) -> Cell:
        """Створює клітинку і позначає сторони, що лежать на межі лабіринту."""
        cell = Cell(column, row)
        if column == 0:
            cell.set_outer_wall(SIDE_LEFT)
        if column == self._columns - 1:
            cell.set_outer_wall(SIDE_RIGHT)
        if row == 0:
            cell.set_outer_wall(SIDE_TOP)
        if row == self._rows - 1:
            cell.set_outer_wall(SIDE_BOTTOM)
        return cell

    def _create_matrix(self) -> list[list[Cell]]:
        return [[self._create_cell(column, row) for column in range(self._columns)]
                for row in range(self._rows)]

    def _reset(self):
        self._cells = []
        self._entry_cell = None
        self._exit_cell = None
        self._longest_path = None

    def get_cell(self, column: int, row: int) -> Optional[Cell]:
        """Повертає клітинку або None для координат поза сіткою."""
        if column < 0 or column > self._columns - 1 or row < 0 or row > self._rows - 1:
            return None
        if not self._cells:
            return None
        return self._cells[row][column]

    def get_random_start_cell(self) -> Cell:
        column = self._random.randint(0, self._columns - 1)
        row = self._random.randint(0, self._rows - 1)
        return self.get_cell(column, row)

    def _get_unvisited_neighbors(self, cell: Cell) -> list[Cell]:
        neighbors = [self.get_cell(*location) for location in cell.get_neighbors_locations()]
        return [neighbor for neighbor in neighbors if neighbor is not None and not neighbor.is_visited]

    # --- Генерація ---
    def _prepare_seed(self, seed):
        if seed is None:
            seed = self._fixed_seed
        if seed is None:
            seed = random.randint(0, 2**32 - 1)
        self.seed = seed
        self._random = random.Random(seed)

    def generate_maze(self, columns: Optional[int] = None, rows: Optional[int] = None, seed=None):
        """
        Генерує новий лабіринт заданого розміру.

        Після побудови остовного дерева запускає пошук найдовшого шляху та
        пробиває вхід і вихід. Якщо пошук не вдався, лабіринт лишається
        порожнім і кидається MazeGenerationError.
        """
        columns = self._columns if columns is None else columns
        rows = self._rows if rows is None else rows
        if columns < 1 or rows < 1:
            raise ValueError(f"Maze size must be at least 1x1, got {columns}x{rows}")
        self._columns = columns
        self._rows = rows
        self._prepare_seed(seed)

        self._reset()
        self.step_count = 0
        self._cells = self._create_matrix()

        stack: list[Cell] = []
        current = self.get_random_start_cell()
        current.mark_as_visited()
        while current is not None:
            candidates = self._get_unvisited_neighbors(current)
            if not candidates:
                self._dispatch_step_taken(current, STATE_BACKTRACK)
                current = stack.pop() if stack else None
                continue

            next_cell = candidates[0] if len(candidates) == 1 else self._random.choice(candidates)
            stack.append(current)
            current.create_path_to(next_cell, strict=True)
            self._dispatch_step_taken(current, STATE_DISCOVERY)
            current = next_cell
            current.mark_as_visited()

        self._find_entry_and_exit()
        logger.info("Generated %dx%d maze (seed=%s), entry=%s, exit=%s",
                    self._columns, self._rows, self.seed,
                    self._entry_cell.id, self._exit_cell.id)

    def _default_solver(self):
        from solvers.longest_path import LongestPathSolver
        return LongestPathSolver(search_seed=self.seed)

    def _find_entry_and_exit(self):
        """Вхід і вихід - кінці найдовшого знайденого шляху."""
        solver = self._solver if self._solver is not None else self._default_solver()
        try:
            solution = solver.solve(self).result(timeout=self._solve_timeout)
        except Exception as exc:
            self._reset()
            raise MazeGenerationError(f"Could not determine entry and exit: {exc}") from exc

        if solution.cancelled or solution.from_location is None or solution.to_cell is None:
            self._reset()
            raise MazeGenerationError("Longest path search produced no solution")

        entry_location = solution.from_location
        exit_location = Location(solution.to_cell["location"]["column"], solution.to_cell["location"]["row"])
        entry_cell = self.get_cell(*entry_location)
        exit_cell = self.get_cell(*exit_location)
        if entry_cell is None or exit_cell is None:
            self._reset()
            raise MazeGenerationError(f"Solution points outside the maze: {entry_location} -> {exit_location}")

        entry_cell.remove_random_outer_wall(self._random)
        if exit_cell is not entry_cell:
            exit_cell.remove_random_outer_wall(self._random)
        self._entry_cell = entry_cell
        self._exit_cell = exit_cell
        self._longest_path = solution

    # --- Експорт ---
    def get_serializable_maze(self) -> list[list[dict]]:
        """Знімок сітки з простих списків і словників для передачі воркерам."""
        return [[cell.to_dict() for cell in row_cells] for row_cells in self._cells]

    def get_configuration(self) -> dict:
        return {
            "columns": self._columns,
            "rows": self._rows,
            "entry_cell": self._entry_cell,
            "exit_cell": self._exit_cell,
        }

    def iter_cells(self):
        for row_cells in self._cells:
            yield from row_cells

    def display(self):
        """Виводить лабіринт у консоль (для налагодження)."""
        for line in self.to_text().splitlines():
            print(line)

    def to_text(self) -> str:
        """ASCII-представлення: '+' кути, '---' та '|' стіни."""
        lines = []
        for row_cells in self._cells:
            top = "+"
            middle = ""
            for cell in row_cells:
                top += ("---" if cell.has_wall(SIDE_TOP) else "   ") + "+"
                middle += ("|" if cell.has_wall(SIDE_LEFT) else " ") + "   "
            last = row_cells[-1]
            middle += "|" if last.has_wall(SIDE_RIGHT) else " "
            lines.append(top)
            lines.append(middle)
        if self._cells:
            bottom = "+"
            for cell in self._cells[-1]:
                bottom += ("---" if cell.has_wall(SIDE_BOTTOM) else "   ") + "+"
            lines.append(bottom)
        return "\n".join(lines)
