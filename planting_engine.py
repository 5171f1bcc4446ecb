"""
planting_engine.py — Occupancy rules for planting squares.

This module implements:
- Active occupancy: only plantings with status 'active' occupy a square
- Conflict detection: warn when a new planting lands on an occupied square

Succession planting (several plantings in one square over time) is allowed,
so conflicts never block a write. They only produce advisory text:
    "A1 already has active planting: Tomato"
Warnings follow the order of the candidate squares. When a square already holds
more than one active planting, every one of them is reported.
"""

from collections import defaultdict

from utils.grid import normalize_label


def active_occupancy(plantings):
    """
    Reduce planting rows to the (square, plant_name) pairs that occupy squares.

    Args:
        plantings: Iterable of Planting dataclasses.

    Returns:
        List of (square_label, plant_name) for plantings whose status is 'active'.
    """
    return [(p.square, p.plant_name) for p in plantings if p.is_active]


def find_conflicts(candidate_squares, occupancy):
    """
    Compute overlap warnings for squares about to be planted.

    Args:
        candidate_squares: Labels the caller intends to plant, already validated
            against the garden's extent.
        occupancy: (square_label, plant_name) pairs for the garden's active plantings.

    Returns:
        List of warning strings; empty when nothing collides.
    """
    by_square = defaultdict(list)
    for square, plant_name in occupancy:
        by_square[normalize_label(square)].append(plant_name)

    warnings = []
    seen = set()
    for raw in candidate_squares:
        label = normalize_label(raw)
        if label in seen:
            continue
        seen.add(label)
        for plant_name in by_square.get(label, []):
            warnings.append(f"{label} already has active planting: {plant_name}")
    return warnings
