from PIL import Image

from environment.cell import ALL_SIDES, SIDE_LEFT, SIDE_NONE, SIDE_TOP
from visualization.maze_renderer import BASE_PADDING, cell_bounds, cell_center, render_maze, wall_segments


def test_cell_geometry():
    assert cell_bounds(2, 1, 10) == (BASE_PADDING + 20, BASE_PADDING + 10, BASE_PADDING + 30, BASE_PADDING + 20)
    assert cell_center(0, 0, 10, padding=0) == (5, 5)


def test_wall_segments_follow_mask():
    assert len(wall_segments(0, 0, ALL_SIDES, 10)) == 4
    assert wall_segments(0, 0, SIDE_NONE, 10) == []
    top, left = wall_segments(1, 1, SIDE_TOP | SIDE_LEFT, 10, padding=0)
    assert top == (10, 10, 20, 10)
    assert left == (10, 10, 10, 20)


def test_render_maze_size_and_entry_colour(generated_maze):
    maze = generated_maze(6, 4, seed=3)
    cell_size = 20
    image = render_maze(maze, cell_size=cell_size, path=maze.longest_path.path)
    assert isinstance(image, Image.Image)
    assert image.size == (6 * cell_size + 2 * BASE_PADDING, 4 * cell_size + 2 * BASE_PADDING)

    x0, y0, _, _ = cell_bounds(maze.entry_cell.column, maze.entry_cell.row, cell_size)
    inset = cell_size // 4
    assert image.getpixel((x0 + inset, y0 + inset)) == (144, 238, 144)


def test_render_accepts_coordinate_path(generated_maze, tmp_path):
    maze = generated_maze(3, 3)
    image = render_maze(maze, cell_size=12, path=[(0, 0), (1, 0)])
    output = tmp_path / "maze.png"
    image.save(output)
    assert output.exists()
