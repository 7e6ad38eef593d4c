import random
from typing import Optional

from environment.cell import Location, location_id

from .solution import Solution


def make_search_random(search_seed, start_location) -> random.Random:
    """
    Генератор для пошуку з однієї клітинки. З фіксованим seed результат
    залежить лише від клітинки, а не від воркера, який її обробляє.
    """
    if search_seed is None:
        return random.Random()
    return random.Random(f"{search_seed}:{start_location[0]}:{start_location[1]}")


def _get_random_unvisited_neighbor(cell: dict, visited_cells: set, rng: random.Random) -> Optional[dict]:
    valid_locations = [
        location for location in cell["paths"]
        if location_id(location["column"], location["row"]) not in visited_cells
    ]
    if not valid_locations:
        return None
    if len(valid_locations) == 1:
        return valid_locations[0]
    return rng.choice(valid_locations)


def find_longest_path_for_cell(maze_cells: list[list[dict]], start_location,
                               rng: Optional[random.Random] = None) -> Solution:
    """
    Ітеративний DFS по проходах лабіринту з однієї стартової клітинки.

    У тупику шлях записується, якщо стек глибший за найкращий відомий шлях
    і клітинка має зовнішню стіну. Сусід обирається випадково, тож це оцінка
    однієї вибірки, а не гарантований найдовший шлях.
    """
    rng = rng or random.Random()
    start_location = Location(*start_location)
    visited_cells = set()
    stack: list[dict] = []
    solution = Solution.empty()

    cell = maze_cells[start_location.row][start_location.column]
    while cell is not None:
        visited_cells.add(cell["id"])
        next_location = _get_random_unvisited_neighbor(cell, visited_cells, rng)
        if next_location is None:
            if len(stack) + 1 > solution.length and cell["outer_walls"] != 0:
                solution = Solution(start_location, cell, stack + [cell])
            cell = stack.pop() if stack else None
            continue
        stack.append(cell)
        cell = maze_cells[next_location["row"]][next_location["column"]]

    solution.from_location = start_location
    return solution
