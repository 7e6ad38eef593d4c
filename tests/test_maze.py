from collections import deque
from concurrent.futures import Future

import pytest

from environment.cell import ALL_SIDES, SIDE_BOTTOM, SIDE_LEFT, SIDE_NONE, SIDE_RIGHT, SIDE_TOP
from environment.errors import MazeGenerationError
from environment.maze import STATE_BACKTRACK, STATE_DISCOVERY, Maze
from solvers.longest_path_threaded import ThreadedLongestPathSolver
from solvers.solution import Solution


def expected_outer_walls(maze, cell):
    outer = SIDE_NONE
    if cell.column == 0: outer |= SIDE_LEFT
    if cell.column == maze.columns - 1: outer |= SIDE_RIGHT
    if cell.row == 0: outer |= SIDE_TOP
    if cell.row == maze.rows - 1: outer |= SIDE_BOTTOM
    return outer


def count_reachable(maze, start):
    seen = {start.id}
    queue = deque([start])
    while queue:
        cell = queue.popleft()
        for location in cell.paths:
            neighbor = maze.get_cell(*location)
            if neighbor.id not in seen:
                seen.add(neighbor.id)
                queue.append(neighbor)
    return len(seen)


class BrokenSolver:
    def solve(self, maze, cancel_token=None):
        future = Future()
        future.set_exception(RuntimeError("solver exploded"))
        return future


class EmptySolver:
    def solve(self, maze, cancel_token=None):
        future = Future()
        future.set_result(Solution.empty())
        return future


@pytest.mark.parametrize("columns, rows", [(1, 1), (2, 2), (7, 4), (1, 6), (12, 12)])
def test_generated_maze_is_spanning_tree(generated_maze, columns, rows):
    maze = generated_maze(columns, rows, seed=columns * 100 + rows)
    cells = list(maze.iter_cells())
    assert len(cells) == columns * rows
    edges = sum(cell.number_of_neighbors for cell in cells) // 2
    assert edges == columns * rows - 1
    assert count_reachable(maze, cells[0]) == columns * rows


def test_passages_are_reciprocal(generated_maze):
    maze = generated_maze(9, 7)
    for cell in maze.iter_cells():
        for location in cell.paths:
            neighbor = maze.get_cell(*location)
            assert cell.location in neighbor.paths
            assert not cell.has_wall(cell.get_shared_side(neighbor))
            assert not neighbor.has_wall(neighbor.get_shared_side(cell))


def test_outer_walls_match_boundary(generated_maze):
    maze = generated_maze(5, 8)
    for cell in maze.iter_cells():
        assert cell.outer_walls == expected_outer_walls(maze, cell)


def test_entry_and_exit_have_one_open_outer_wall(generated_maze):
    maze = generated_maze(10, 10, seed=99)
    assert maze.entry_cell is not None and maze.exit_cell is not None
    assert maze.entry_cell is not maze.exit_cell
    for cell in (maze.entry_cell, maze.exit_cell):
        open_walls = cell.get_open_outer_walls()
        assert open_walls != SIDE_NONE
        assert open_walls & (open_walls - 1) == 0
    others = [cell for cell in maze.iter_cells() if cell not in (maze.entry_cell, maze.exit_cell)]
    assert all(cell.get_open_outer_walls() == SIDE_NONE for cell in others)


def test_entry_and_exit_are_ends_of_longest_path(generated_maze):
    maze = generated_maze(8, 8, seed=5)
    solution = maze.longest_path
    assert tuple(maze.entry_cell.location) == tuple(solution.from_location)
    assert maze.exit_cell.id == solution.to_cell["id"]


def test_single_cell_maze():
    maze = Maze(1, 1, seed=3)
    events = []
    maze.on_step_taken(events.append)
    maze.generate_maze()

    cell = maze.get_cell(0, 0)
    assert cell.outer_walls == ALL_SIDES
    assert maze.entry_cell is cell and maze.exit_cell is cell
    removed = ALL_SIDES & ~cell.walls
    assert removed in (SIDE_TOP, SIDE_RIGHT, SIDE_BOTTOM, SIDE_LEFT)
    assert [event.state for event in events] == [STATE_BACKTRACK]


def test_two_by_two_maze(generated_maze):
    maze = generated_maze(2, 2, seed=21)
    cells = list(maze.iter_cells())
    assert sum(cell.number_of_neighbors for cell in cells) // 2 == 3
    assert all(cell.outer_walls != SIDE_NONE for cell in cells)
    assert 2 <= maze.longest_path.length <= 4


def test_step_events_cover_every_cell():
    maze = Maze(6, 5, seed=8)
    events = []
    maze.on_step_taken(events.append)
    maze.generate_maze()

    discoveries = [event for event in events if event.state == STATE_DISCOVERY]
    backtracks = [event for event in events if event.state == STATE_BACKTRACK]
    assert len(discoveries) == 6 * 5 - 1
    assert len(backtracks) == 6 * 5
    assert {event.cell.id for event in backtracks} == {cell.id for cell in maze.iter_cells()}
    assert maze.step_count == len(events)


def test_removed_listener_is_not_called():
    maze = Maze(3, 3, seed=1)
    events = []
    maze.on_step_taken(events.append)
    maze.remove_step_listener(events.append)
    maze.generate_maze()
    assert events == []


def test_same_seed_gives_same_maze():
    first = Maze(10, 10, seed="repeatable")
    second = Maze(10, 10, seed="repeatable")
    first.generate_maze()
    second.generate_maze()
    assert first.to_text() == second.to_text()
    assert first.entry_cell.id == second.entry_cell.id
    assert first.exit_cell.id == second.exit_cell.id


def test_random_seed_is_recorded():
    maze = Maze(4, 4)
    maze.generate_maze()
    assert maze.seed is not None
    replay = Maze(4, 4, seed=maze.seed)
    replay.generate_maze()
    assert replay.to_text() == maze.to_text()


def test_generate_with_new_size():
    maze = Maze(3, 3, seed=2)
    maze.generate_maze(5, 2)
    assert (maze.columns, maze.rows) == (5, 2)
    assert len(maze.cells) == 2 and len(maze.cells[0]) == 5


@pytest.mark.parametrize("columns, rows", [(0, 5), (5, 0), (-1, 3)])
def test_invalid_size_raises(columns, rows):
    with pytest.raises(ValueError):
        Maze(3, 3).generate_maze(columns, rows)


def test_get_cell_out_of_bounds(generated_maze):
    maze = generated_maze(3, 3)
    assert maze.get_cell(3, 0) is None
    assert maze.get_cell(0, -1) is None
    assert maze.get_cell(2, 2).id == "2_2"
    assert Maze(3, 3).get_cell(0, 0) is None


def test_solver_failure_leaves_empty_maze():
    maze = Maze(4, 4, seed=1, solver=BrokenSolver())
    with pytest.raises(MazeGenerationError) as exc_info:
        maze.generate_maze()
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert maze.cells == []
    assert maze.entry_cell is None and maze.exit_cell is None


def test_empty_solution_is_a_generation_error():
    maze = Maze(3, 3, seed=1, solver=EmptySolver())
    with pytest.raises(MazeGenerationError):
        maze.generate_maze()
    assert maze.cells == []


def test_threaded_solver_sets_entry_and_exit():
    solver = ThreadedLongestPathSolver(3, backend="thread", timeout=10)
    maze = Maze(8, 6, seed=44, solver=solver, solve_timeout=30)
    maze.generate_maze()
    assert maze.entry_cell is not None and maze.exit_cell is not None
    assert maze.longest_path.length == solver.solution.length


def test_serializable_maze_and_configuration(generated_maze):
    maze = generated_maze(3, 2)
    serialized = maze.get_serializable_maze()
    assert len(serialized) == 2 and len(serialized[0]) == 3
    assert serialized[1][2]["id"] == "2_1"
    configuration = maze.get_configuration()
    assert configuration["columns"] == 3 and configuration["rows"] == 2
    assert configuration["entry_cell"] is maze.entry_cell


def test_text_rendering_has_grid_shape(generated_maze):
    maze = generated_maze(4, 3)
    lines = maze.to_text().splitlines()
    assert len(lines) == 2 * 3 + 1
    assert all(len(line) == 4 * 4 + 1 for line in lines)
