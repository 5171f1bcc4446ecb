"""
tests/test_planting_engine.py — Tests for active occupancy and conflict warnings.
"""

from models import Planting
from planting_engine import active_occupancy, find_conflicts


def test_flags_only_occupied_square():
    warnings = find_conflicts(['A1', 'A2'], [('A1', 'Tomato')])
    assert warnings == ['A1 already has active planting: Tomato']


def test_no_candidates_no_warnings():
    assert find_conflicts([], [('A1', 'Tomato')]) == []


def test_empty_garden():
    assert find_conflicts(['A1', 'B2'], []) == []


def test_preserves_candidate_order():
    occupancy = [('A1', 'Tomato'), ('C3', 'Basil')]
    warnings = find_conflicts(['C3', 'B2', 'A1'], occupancy)
    assert warnings == [
        'C3 already has active planting: Basil',
        'A1 already has active planting: Tomato',
    ]


def test_reports_every_existing_planting_on_square():
    occupancy = [('B2', 'Lettuce'), ('B2', 'Radish')]
    warnings = find_conflicts(['B2'], occupancy)
    assert warnings == [
        'B2 already has active planting: Lettuce',
        'B2 already has active planting: Radish',
    ]


def test_normalizes_labels():
    warnings = find_conflicts([' a1'], [('A1', 'Tomato')])
    assert warnings == ['A1 already has active planting: Tomato']


def test_duplicate_candidates_reported_once():
    warnings = find_conflicts(['A1', 'a1'], [('A1', 'Tomato')])
    assert len(warnings) == 1


def test_active_occupancy_ignores_finished_plantings():
    plantings = [
        Planting(square='A1', plant_name='Tomato', status='active'),
        Planting(square='A2', plant_name='Pea', status='harvested'),
        Planting(square='A3', plant_name='Bean', status='failed'),
    ]
    assert active_occupancy(plantings) == [('A1', 'Tomato')]


def test_harvested_square_does_not_conflict():
    plantings = [Planting(square='A2', plant_name='Pea', status='harvested')]
    assert find_conflicts(['A2'], active_occupancy(plantings)) == []
