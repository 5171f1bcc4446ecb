"""
tests/test_export.py — Tests for Excel/JSON export and auto-backup.
"""

import os
from io import BytesIO

from openpyxl import load_workbook

from utils.backup import backup_db, list_backups, prune_backups

HEADERS = {'X-User-Id': 'alice'}


def _seed(call_tool):
    call_tool('create_garden', {'id': 'H', 'name': 'Home Bed', 'cols': 4, 'rows': 4})
    _, planted = call_tool('add_planting', {'garden_id': 'H', 'squares': ['A1', 'B2'], 'plant_name': 'Tomato'})
    call_tool('record_harvest', {'planting_id': planted['plantings'][0]['id'], 'mark_complete': True})
    call_tool('start_seedlings', {'plant_name': 'Basil', 'count': 6})


def test_excel_requires_user(client):
    rv = client.get('/export/excel')
    assert rv.status_code == 401


def test_excel_without_data(client):
    rv = client.get('/export/excel', headers=HEADERS)
    assert rv.status_code == 404
    assert rv.get_json()['success'] is False


def test_excel_workbook(client, call_tool):
    _seed(call_tool)

    rv = client.get('/export/excel', headers=HEADERS)
    assert rv.status_code == 200
    assert 'garden_data_' in rv.headers['Content-Disposition']

    wb = load_workbook(BytesIO(rv.data))
    assert wb.sheetnames == ['Gardens', 'Plantings', 'Harvests', 'Seedlings', 'Notes']

    plantings = wb['Plantings']
    header = [c.value for c in plantings[1]]
    assert header[:3] == ['id', 'garden_id', 'square']
    assert plantings.max_row == 3
    assert plantings.freeze_panes == 'A2'

    status_col = header.index('status') + 1
    statuses = {plantings.cell(row=r, column=status_col).value for r in (2, 3)}
    assert statuses == {'active', 'harvested'}
    fill = plantings.cell(row=2, column=status_col).fill.start_color.rgb
    assert fill[-6:] in ('4CAF50', 'FFB300')

    assert wb['Seedlings'].cell(row=2, column=2).value == 'Basil'
    assert wb['Notes'].max_row == 1


def test_excel_only_contains_callers_data(client, call_tool):
    _seed(call_tool)
    call_tool('start_seedlings', {'plant_name': 'Leek'}, user='bob')

    rv = client.get('/export/excel', headers={'X-User-Id': 'bob'})
    wb = load_workbook(BytesIO(rv.data))
    assert wb['Gardens'].max_row == 1
    assert wb['Seedlings'].cell(row=2, column=2).value == 'Leek'


def test_json_export(client, call_tool):
    _seed(call_tool)
    rv = client.get('/export/json', headers=HEADERS)
    assert rv.status_code == 200
    data = rv.get_json()['data']
    assert len(data['plantings']) == 2
    assert len(data['harvests']) == 1


def test_export_creates_backup(client, call_tool):
    _seed(call_tool)
    client.get('/export/json', headers=HEADERS)

    rv = client.get('/export/backups', headers={'X-User-Id': 'admin'})
    assert rv.status_code == 200
    backups = rv.get_json()['backups']
    assert backups
    assert backups[0]['reason'] == 'export'
    assert backups[0]['size_bytes'] > 0


def test_backups_restricted_to_operators(client, call_tool):
    _seed(call_tool)
    client.get('/export/json', headers=HEADERS)

    rv = client.get('/export/backups', headers=HEADERS)
    assert rv.status_code == 403
    assert 'backups' not in rv.get_json()


def test_old_backups_are_pruned(app):
    backup_dir = app.config['BACKUP_DIR']
    os.makedirs(backup_dir, exist_ok=True)
    names = [f'garden_2026010{d}_120000_export.db' for d in range(1, 6)]
    for name in names:
        with open(os.path.join(backup_dir, name), 'wb') as f:
            f.write(b'x')

    with app.app_context():
        deleted = prune_backups(2)
        remaining = [b['filename'] for b in list_backups()]

    assert sorted(deleted) == names[:3]
    assert remaining == [names[4], names[3]]


def test_backup_keeps_configured_count(app):
    app.config['BACKUP_KEEP'] = 1
    backup_dir = app.config['BACKUP_DIR']
    os.makedirs(backup_dir, exist_ok=True)
    with open(os.path.join(backup_dir, 'garden_20000101_000000_old.db'), 'wb') as f:
        f.write(b'x')

    with app.app_context():
        filename = backup_db('export')
        remaining = [b['filename'] for b in list_backups()]

    assert remaining == [filename]
