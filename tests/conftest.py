import matplotlib

matplotlib.use("Agg")

import pytest

from environment.cell import Cell, SIDE_BOTTOM, SIDE_LEFT, SIDE_RIGHT, SIDE_TOP
from environment.maze import Maze
from solvers.longest_path import LongestPathSolver


def build_cells(columns, rows, passages):
    """Серіалізована сітка з заданими проходами ((c1, r1), (c2, r2))."""
    cells = [[Cell(column, row) for column in range(columns)] for row in range(rows)]
    for row_cells in cells:
        for cell in row_cells:
            if cell.column == 0: cell.set_outer_wall(SIDE_LEFT)
            if cell.column == columns - 1: cell.set_outer_wall(SIDE_RIGHT)
            if cell.row == 0: cell.set_outer_wall(SIDE_TOP)
            if cell.row == rows - 1: cell.set_outer_wall(SIDE_BOTTOM)
    for (column_a, row_a), (column_b, row_b) in passages:
        cells[row_a][column_a].create_path_to(cells[row_b][column_b], strict=True)
    return [[cell.to_dict() for cell in row_cells] for row_cells in cells]


def assert_valid_path(maze_cells, solution):
    """Шлях неперервний по проходах, починається з from_location і закінчується to_cell."""
    path = solution.path
    assert path
    first = path[0]["location"]
    assert (first["column"], first["row"]) == tuple(solution.from_location)
    assert path[-1]["id"] == solution.to_cell["id"]
    assert len({cell["id"] for cell in path}) == len(path)
    for current, following in zip(path, path[1:]):
        assert following["location"] in current["paths"]
    assert solution.to_cell["outer_walls"] != 0


@pytest.fixture
def generated_maze():
    def factory(columns=6, rows=6, seed=1234):
        maze = Maze(columns, rows, seed=seed, solver=LongestPathSolver(search_seed=seed))
        maze.generate_maze()
        return maze
    return factory
