from typing import Iterable

from environment.cell import HORIZONTAL_CORRIDOR, VERTICAL_CORRIDOR, location_from_dict

from .errors import EmptyCandidateSetError


def flatten(maze_cells: list[list[dict]]) -> list[dict]:
    return [cell for row_cells in maze_cells for cell in row_cells]


def determine_potential_entry_cells(maze_cells: list[list[dict]]) -> list[dict]:
    """
    Клітинки на межі лабіринту, які можуть бути кінцем найдовшого шляху.
    Прямий коридор (дві протилежні стіни) ніколи не є кінцем шляху.
    Пробиті вхід і вихід рахуються стінами, тож повторний пошук на готовому
    лабіринті бачить тих самих кандидатів.
    """
    return [
        cell for cell in flatten(maze_cells)
        if cell["outer_walls"] != 0
        and _candidate_walls(cell) not in (HORIZONTAL_CORRIDOR, VERTICAL_CORRIDOR)
    ]


def _candidate_walls(cell: dict) -> int:
    return cell["active_walls"] | cell["outer_walls"]


def is_prunable(cell: dict) -> bool:
    """Клітинка на межі з рівно двома сусідами лежить усередині знайденого шляху."""
    return cell["outer_walls"] != 0 and cell["number_of_neighbors"] == 2


class CandidatePool:
    """
    Робоча множина кандидатів (id -> опис клітинки) у порядку додавання.
    Змінюється лише координатором, ніколи воркерами.
    """

    def __init__(self, cells: Iterable[dict] = ()):
        self._cells: dict[str, dict] = {}
        for cell in cells:
            self._cells[cell["id"]] = cell

    def __len__(self):
        return len(self._cells)

    def __bool__(self):
        return bool(self._cells)

    def __contains__(self, cell_id: str):
        return cell_id in self._cells

    def ids(self) -> list[str]:
        return list(self._cells)

    def shift(self) -> dict:
        """Забирає першого кандидата; порожня множина - помилка."""
        if not self._cells:
            raise EmptyCandidateSetError("No potential entry cells left to process")
        cell_id = next(iter(self._cells))
        return self._cells.pop(cell_id)

    def shift_location(self):
        return location_from_dict(self.shift()["location"])

    def discard(self, cell_id: str) -> bool:
        return self._cells.pop(cell_id, None) is not None

    def prune(self, path_cells: Iterable[dict]) -> int:
        """Прибирає клітинки шляху, що вже не можуть почати довший шлях. Повертає кількість."""
        prune_count = 0
        for cell in path_cells:
            if is_prunable(cell) and self.discard(cell["id"]):
                prune_count += 1
        return prune_count
