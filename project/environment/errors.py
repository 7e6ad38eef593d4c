class MazeError(Exception):
    """Базовий виняток для помилок моделі лабіринту."""


class InvalidAdjacencyError(MazeError):
    """Операцію викликано для клітинок, що не є сусідами."""

    def __init__(self, cell, other):
        super().__init__(f"Cells {cell.id} and {other.id} are not adjacent")
        self.cell = cell
        self.other = other


class MazeGenerationError(MazeError):
    """Генерація не завершилась: лабіринт не має валідного входу та виходу."""
