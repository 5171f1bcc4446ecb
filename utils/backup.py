"""
utils/backup.py — Database backups.

Copies the .db file to the backup directory with a timestamped filename.
Backup triggers: before every export. Only the newest BACKUP_KEEP copies are kept.
Format: garden_YYYYMMDD_HHMMSS_{reason}.db
"""

import logging
import os
import shutil
from datetime import datetime

from flask import current_app, has_app_context

from database import get_db_path

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'backups')
DEFAULT_BACKUP_KEEP = 20


def get_backup_dir():
    """Backup directory: app config BACKUP_DIR, else GARDEN_BACKUP_DIR env var, else backups/."""
    if has_app_context() and current_app.config.get('BACKUP_DIR'):
        return current_app.config['BACKUP_DIR']
    return os.environ.get('GARDEN_BACKUP_DIR', DEFAULT_BACKUP_DIR)


def get_backup_keep():
    """How many backups to retain: app config BACKUP_KEEP, else GARDEN_BACKUP_KEEP, else 20."""
    if has_app_context() and current_app.config.get('BACKUP_KEEP'):
        return current_app.config['BACKUP_KEEP']
    return int(os.environ.get('GARDEN_BACKUP_KEEP', DEFAULT_BACKUP_KEEP))


def backup_db(reason='manual'):
    """
    Copy the current database to the backup directory.

    Args:
        reason: Short tag for the backup trigger (e.g., 'manual', 'export').

    Returns:
        The filename of the created backup, or None on failure.
    """
    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    db_path = get_db_path()
    if not os.path.exists(db_path):
        return None

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    # Sanitize reason string
    safe_reason = reason.replace(' ', '_').replace('/', '_')[:30]
    filename = f'garden_{timestamp}_{safe_reason}.db'

    try:
        shutil.copy2(db_path, os.path.join(backup_dir, filename))
    except OSError as e:
        logger.error("Backup %s failed: %s", filename, e)
        return None
    logger.info("Database backed up to %s", filename)
    prune_backups(get_backup_keep())
    return filename


def list_backups():
    """
    List all backup files, newest first.

    Returns:
        List of dicts with keys: filename, timestamp, size_bytes, reason.
    """
    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    backups = []
    for f in os.listdir(backup_dir):
        if not (f.startswith('garden_') and f.endswith('.db')):
            continue

        # parts: ['garden', 'YYYYMMDD', 'HHMMSS', 'reason', ...]
        parts = f[:-len('.db')].split('_')
        timestamp_str = ''
        reason = ''
        if len(parts) >= 3:
            date_part, time_part = parts[1], parts[2]
            timestamp_str = (f'{date_part[:4]}-{date_part[4:6]}-{date_part[6:8]} '
                             f'{time_part[:2]}:{time_part[2:4]}:{time_part[4:6]}')
            reason = '_'.join(parts[3:])

        backups.append({
            'filename': f,
            'timestamp': timestamp_str,
            'size_bytes': os.stat(os.path.join(backup_dir, f)).st_size,
            'reason': reason,
        })

    backups.sort(key=lambda b: b['filename'], reverse=True)
    return backups


def prune_backups(keep):
    """
    Delete all but the newest `keep` backups.

    Returns:
        List of deleted filenames.
    """
    backup_dir = get_backup_dir()
    deleted = []
    for backup in list_backups()[keep:]:
        try:
            os.remove(os.path.join(backup_dir, backup['filename']))
        except OSError as e:
            logger.error("Could not delete old backup %s: %s", backup['filename'], e)
            continue
        deleted.append(backup['filename'])
    if deleted:
        logger.info("Pruned %d old backup(s)", len(deleted))
    return deleted
