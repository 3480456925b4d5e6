import logging
import os

import pandas as pd

from app.extensions import db
from app.models import FishProfile, MaintenanceTask, TankLog, Plant, Note, MaintenanceCategory, TaskPriority, LightLevel
from app.utils import parse_date, parse_enum

logger = logging.getLogger(__name__)

SAMPLE_DATA_DIR = os.path.join(os.path.dirname(__file__), 'sample_data')

# sample files give recurrence as a label
RECURRENCE_DAYS = {
    'daily': 1,
    'weekly': 7,
    'bi-weekly': 14,
    'biweekly': 14,
    'monthly': 30,
}


def recurrence_days(label):
    """'Weekly (Tuesday)' -> 7, empty -> None."""
    if not label:
        return None
    key = str(label).split('(')[0].strip().lower()
    return RECURRENCE_DAYS.get(key)


def _value(row, key):
    value = row.get(key)
    if value is None or pd.isna(value):
        return None
    return value


def _number(row, key):
    value = _value(row, key)
    return None if value is None else float(value)


def _read_csv(name):
    csv_path = os.path.join(SAMPLE_DATA_DIR, name)
    if not os.path.exists(csv_path):
        logger.warning("'%s' not found, skipping", csv_path)
        return None
    return pd.read_csv(csv_path)


def seed_fish_profile():
    volt = FishProfile.query.first()
    if volt is None:
        volt = FishProfile(name='Volt',
                           species='Betta splendens',
                           variant='Veiltail',
                           color='Red/Blue',
                           age='~8 months',
                           tank='3.5 gallon planted',
                           acquisition_date=parse_date('2025-04-05'),
                           profile_picture='🐠',
                           is_picture_emoji=True)
        db.session.add(volt)
        db.session.commit()
        logger.info("Created fish profile for %s", volt.name)
    return volt


def seed_maintenance_tasks(fish):
    df = _read_csv('maintenance_tasks.csv')
    if df is None:
        return 0

    for _, row in df.iterrows():
        days = recurrence_days(_value(row, 'recurring'))
        db.session.add(MaintenanceTask(
            title=row['title'],
            description=_value(row, 'description'),
            category=parse_enum(MaintenanceCategory, _value(row, 'category')) or MaintenanceCategory.OTHER.value,
            scheduled_datetime=parse_date(_value(row, 'scheduled')),
            is_recurring=days is not None,
            recurrence_frequency_days=days or 7,
            last_completed_datetime=parse_date(_value(row, 'last_done')),
            priority=parse_enum(TaskPriority, _value(row, 'priority')) or TaskPriority.MEDIUM.value,
            fish_id=fish.id))
    return len(df)


def seed_tank_logs(fish):
    df = _read_csv('tank_logs.csv')
    if df is None:
        return 0

    for _, row in df.iterrows():
        db.session.add(TankLog(
            title=row['title'],
            description=_value(row, 'notes') or '',
            log_datetime=parse_date(_value(row, 'date')),
            category="Water Test",
            ammonia=_number(row, 'ammonia'),
            nitrite=_number(row, 'nitrite'),
            nitrate=_number(row, 'nitrate'),
            ph=_number(row, 'ph'),
            temperature=_number(row, 'temperature'),
            fish_id=fish.id))
    return len(df)


def seed_plants(fish):
    df = _read_csv('plants.csv')
    if df is None:
        return 0

    for _, row in df.iterrows():
        db.session.add(Plant(
            name=row['name'],
            scientific_name=_value(row, 'scientific_name'),
            added_date=parse_date(_value(row, 'added_date')),
            light_requirement=parse_enum(LightLevel, _value(row, 'light_requirement')) or LightLevel.MEDIUM.value,
            care_notes=_value(row, 'care_notes'),
            fish_id=fish.id))
    return len(df)


def seed_notes(fish):
    df = _read_csv('notes.csv')
    if df is None:
        return 0

    for _, row in df.iterrows():
        written = parse_date(_value(row, 'date'))
        db.session.add(Note(
            title=row['title'],
            content=_value(row, 'content') or '',
            tags=_value(row, 'tags') or '',
            created_datetime=written,
            modified_datetime=written,
            fish_id=fish.id))
    return len(df)


def seed_sample_data():
    """Creates Volt's profile and, on an empty store, the sample records."""
    fish = seed_fish_profile()

    if MaintenanceTask.query.first() is not None or TankLog.query.first() is not None:
        return fish

    try:
        counts = {
            'maintenance tasks': seed_maintenance_tasks(fish),
            'tank logs': seed_tank_logs(fish),
            'plants': seed_plants(fish),
            'notes': seed_notes(fish),
        }
        db.session.commit()
        logger.info("Sample data loaded: %s", counts)
    except Exception:
        db.session.rollback()
        logger.exception("Loading sample data failed")

    return fish
