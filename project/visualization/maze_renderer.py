from typing import Iterable, Optional

from PIL import Image, ImageDraw

from environment.cell import SIDE_BOTTOM, SIDE_LEFT, SIDE_RIGHT, SIDE_TOP

# Кольори
COLOR_BACKGROUND = "white"
COLOR_WALL = "black"
COLOR_ENTRY = "lightgreen"
COLOR_EXIT = "red"
COLOR_PATH_CELL = "#FFF3B0"
COLOR_PATH_LINE = "#1E88E5"

BASE_PADDING = 10
BASE_WALL_WIDTH = 2


def cell_bounds(column: int, row: int, cell_size: int, padding: int = BASE_PADDING) -> tuple[int, int, int, int]:
    """Піксельні межі клітинки (x0, y0, x1, y1)."""
    x0 = padding + column * cell_size
    y0 = padding + row * cell_size
    return x0, y0, x0 + cell_size, y0 + cell_size


def cell_center(column: int, row: int, cell_size: int, padding: int = BASE_PADDING) -> tuple[float, float]:
    x0, y0, x1, y1 = cell_bounds(column, row, cell_size, padding)
    return (x0 + x1) / 2, (y0 + y1) / 2


def wall_segments(column: int, row: int, walls: int, cell_size: int,
                  padding: int = BASE_PADDING) -> list[tuple[int, int, int, int]]:
    """Відрізки стін клітинки за бітовою маскою."""
    x0, y0, x1, y1 = cell_bounds(column, row, cell_size, padding)
    segments = []
    if walls & SIDE_TOP: segments.append((x0, y0, x1, y0))
    if walls & SIDE_RIGHT: segments.append((x1, y0, x1, y1))
    if walls & SIDE_BOTTOM: segments.append((x0, y1, x1, y1))
    if walls & SIDE_LEFT: segments.append((x0, y0, x0, y1))
    return segments


def _path_locations(path: Iterable) -> list[tuple[int, int]]:
    """Шлях з описів клітинок (dict) або координат (column, row)."""
    locations = []
    for item in path:
        if isinstance(item, dict):
            location = item["location"]
            locations.append((location["column"], location["row"]))
        else:
            locations.append((item[0], item[1]))
    return locations


def render_maze(maze, cell_size: int = 20, path: Optional[Iterable] = None,
                wall_width: int = BASE_WALL_WIDTH) -> Image.Image:
    """
    Малює лабіринт у зображення PIL.

    Args:
        maze: згенерований Maze.
        cell_size: розмір клітинки в пікселях.
        path: необов'язковий шлях (опис клітинок або координати) для підсвічування.
        wall_width: товщина ліній стін.
    """
    img_width = maze.columns * cell_size + 2 * BASE_PADDING
    img_height = maze.rows * cell_size + 2 * BASE_PADDING
    image = Image.new("RGB", (img_width, img_height), COLOR_BACKGROUND)
    draw = ImageDraw.Draw(image)

    locations = _path_locations(path) if path else []
    for column, row in locations:
        draw.rectangle(cell_bounds(column, row, cell_size), fill=COLOR_PATH_CELL)

    if maze.entry_cell is not None:
        draw.rectangle(cell_bounds(maze.entry_cell.column, maze.entry_cell.row, cell_size), fill=COLOR_ENTRY)
    if maze.exit_cell is not None and maze.exit_cell is not maze.entry_cell:
        draw.rectangle(cell_bounds(maze.exit_cell.column, maze.exit_cell.row, cell_size), fill=COLOR_EXIT)

    if len(locations) > 1:
        points = [cell_center(column, row, cell_size) for column, row in locations]
        draw.line(points, fill=COLOR_PATH_LINE, width=max(1, cell_size // 5))

    for cell in maze.iter_cells():
        for segment in wall_segments(cell.column, cell.row, cell.walls, cell_size):
            draw.line(segment, fill=COLOR_WALL, width=wall_width)

    return image
