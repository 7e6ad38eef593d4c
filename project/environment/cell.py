import random
from collections import namedtuple
from typing import Optional

from .errors import InvalidAdjacencyError

# --- Сторони клітинки (бітова маска) ---
SIDE_NONE = 0
SIDE_TOP = 0b0001
SIDE_RIGHT = 0b0010
SIDE_BOTTOM = 0b0100
SIDE_LEFT = 0b1000
ALL_SIDES = SIDE_TOP | SIDE_RIGHT | SIDE_BOTTOM | SIDE_LEFT
SIDES = (SIDE_TOP, SIDE_RIGHT, SIDE_BOTTOM, SIDE_LEFT)

# Коридори: лише дві протилежні стіни
VERTICAL_CORRIDOR = SIDE_LEFT | SIDE_RIGHT
HORIZONTAL_CORRIDOR = SIDE_TOP | SIDE_BOTTOM

Location = namedtuple("Location", ["column", "row"])


def location_id(column: int, row: int) -> str:
    """Рядковий ключ клітинки, однаковий по обидва боки серіалізації."""
    return f"{column}_{row}"


def location_to_dict(location) -> dict:
    return {"column": location[0], "row": location[1]}


def location_from_dict(data: dict) -> Location:
    return Location(int(data["column"]), int(data["row"]))


def opposite_side(side: int) -> int:
    """Повертає протилежну сторону."""
    if side == SIDE_TOP: return SIDE_BOTTOM
    if side == SIDE_BOTTOM: return SIDE_TOP
    if side == SIDE_LEFT: return SIDE_RIGHT
    if side == SIDE_RIGHT: return SIDE_LEFT
    return SIDE_NONE


class Cell:
    """Одна клітинка сітки: стіни, зовнішні стіни та відкриті проходи."""

    def __init__(self, column: int, row: int):
        self._column = column
        self._row = row
        self._walls = ALL_SIDES
        self._outer_walls = SIDE_NONE
        self._paths: list[Location] = []
        self.is_visited = False

    def __repr__(self):
        return f"Cell({self._column}, {self._row}, walls={self._walls:04b})"

    @property
    def column(self) -> int:
        return self._column

    @property
    def row(self) -> int:
        return self._row

    @property
    def location(self) -> Location:
        return Location(self._column, self._row)

    @property
    def id(self) -> str:
        return location_id(self._column, self._row)

    @property
    def walls(self) -> int:
        """Маска стін, які ще стоять."""
        return self._walls

    @property
    def outer_walls(self) -> int:
        return self._outer_walls

    @property
    def paths(self) -> tuple:
        return tuple(self._paths)

    @property
    def number_of_neighbors(self) -> int:
        return len(self._paths)

    def has_wall(self, side: int) -> bool:
        return (self._walls & side) == side

    def is_neighbors_with(self, other: 'Cell') -> bool:
        """Сусіди: відстань 1 рівно по одній осі."""
        column_difference = abs(self._column - other.column)
        row_difference = abs(self._row - other.row)
        return (
            (column_difference == 1 and row_difference == 0) or
            (row_difference == 1 and column_difference == 0)
        )

    def get_shared_side(self, other: 'Cell') -> int:
        """Сторона цієї клітинки, спільна з іншою; SIDE_NONE якщо не сусіди."""
        if not self.is_neighbors_with(other):
            return SIDE_NONE
        column_difference = self._column - other.column
        row_difference = self._row - other.row
        if column_difference == -1: return SIDE_RIGHT
        if column_difference == 1: return SIDE_LEFT
        if row_difference == -1: return SIDE_BOTTOM
        return SIDE_TOP

    def _remove_wall(self, side: int):
        self._walls &= ~side

    def create_path_to(self, other: 'Cell', strict: bool = False) -> bool:
        """
        Прибирає стіну між двома сусідніми клітинками з обох боків
        і записує прохід у обидві клітинки.

        Для клітинок, що не є сусідами, нічого не робить і повертає False,
        або кидає InvalidAdjacencyError при strict=True.
        """
        shared_side = self.get_shared_side(other)
        if shared_side == SIDE_NONE:
            if strict:
                raise InvalidAdjacencyError(self, other)
            return False
        if not self.has_wall(shared_side):
            return True # прохід вже існує
        self._remove_wall(shared_side)
        other._remove_wall(opposite_side(shared_side))
        self._paths.append(other.location)
        other._paths.append(self.location)
        return True

    def has_path_to(self, other: 'Cell') -> bool:
        shared_side = self.get_shared_side(other)
        if shared_side == SIDE_NONE:
            return False
        return not self.has_wall(shared_side)

    def set_outer_wall(self, side: int):
        self._outer_walls |= side

    def remove_random_outer_wall(self, rng: Optional[random.Random] = None) -> int:
        """
        Пробиває випадкову зовнішню стіну (вхід або вихід).
        Повертає прибрану сторону або SIDE_NONE, якщо стін на межі не лишилось.
        """
        candidates = [side for side in SIDES if (self._outer_walls & side) and self.has_wall(side)]
        if not candidates:
            return SIDE_NONE
        rng = rng or random
        selected_side = candidates[0] if len(candidates) == 1 else rng.choice(candidates)
        self._remove_wall(selected_side)
        return selected_side

    def get_open_outer_walls(self) -> int:
        """Зовнішні сторони, на яких стіну вже прибрано."""
        return self._outer_walls & ~self._walls

    def get_neighbors_locations(self) -> list[Location]:
        """Чотири ортогональні сусіди без перевірки меж сітки."""
        return [
            Location(self._column, self._row - 1),
            Location(self._column + 1, self._row),
            Location(self._column, self._row + 1),
            Location(self._column - 1, self._row),
        ]

    def mark_as_visited(self):
        self.is_visited = True

    def to_dict(self) -> dict:
        """Опис клітинки без посилань на живі об'єкти."""
        return {
            "id": self.id,
            "location": location_to_dict(self.location),
            "number_of_neighbors": self.number_of_neighbors,
            "outer_walls": self._outer_walls,
            "active_walls": self._walls,
            "paths": [location_to_dict(path) for path in self._paths],
        }
