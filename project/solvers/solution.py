from typing import Optional

from environment.cell import Location, location_from_dict, location_to_dict


class Solution:
    """
    Результат пошуку: початкова координата, кінцева клітинка та шлях.
    Шлях містить обидві кінцеві клітинки, довжина рахується в клітинках.
    """

    def __init__(self, from_location: Optional[Location] = None, to_cell: Optional[dict] = None,
                 path: Optional[list] = None, cancelled: bool = False):
        self.from_location = Location(*from_location) if from_location is not None else None
        self.to_cell = to_cell
        self.path = list(path) if path else []
        self.cancelled = cancelled

    def __repr__(self):
        to_id = self.to_cell["id"] if self.to_cell else None
        return f"Solution(from={self.from_location}, to={to_id}, length={self.length})"

    @classmethod
    def empty(cls) -> 'Solution':
        """Заглушка нульової довжини: будь-який знайдений шлях довший."""
        return cls()

    @property
    def length(self) -> int:
        return len(self.path)

    def is_longer_than(self, other: 'Solution') -> bool:
        # Рівна довжина не замінює раніше знайдений шлях
        return self.length > other.length

    def copy(self) -> 'Solution':
        return Solution(self.from_location, self.to_cell, self.path, self.cancelled)

    def to_dict(self) -> dict:
        return {
            "from_location": location_to_dict(self.from_location) if self.from_location is not None else None,
            "to_cell": self.to_cell,
            "path": self.path,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Solution':
        from_location = data.get("from_location")
        return cls(
            from_location=location_from_dict(from_location) if from_location is not None else None,
            to_cell=data.get("to_cell"),
            path=data.get("path", []),
        )
