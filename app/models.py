import json
import logging
import os
import uuid
from datetime import datetime, timedelta
from enum import Enum

from app.extensions import db
from app import scheduling
from app.scheduling import MaintenanceStatus
from app.utils import split_tags

logger = logging.getLogger(__name__)


class MaintenanceCategory(str, Enum):
    WATER_CHANGE = "WaterChange"
    FEEDING = "Feeding"
    ENRICHMENT = "Enrichment"
    FILTER_CLEANING = "FilterCleaning"
    PLANT_MAINTENANCE = "PlantMaintenance"
    OTHER = "Other"


class TaskPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PlantLocation(str, Enum):
    IN_TANK = "InTank"
    IN_QUARANTINE = "InQuarantine"
    IN_PREPARATION = "InPreparation"
    REMOVED = "Removed"


class LightLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class IssueSeverity(str, Enum):
    MINOR = "Minor"
    MODERATE = "Moderate"
    SEVERE = "Severe"


class TreatmentStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"
    DISCONTINUED = "Discontinued"


class SymptomSeverity(str, Enum):
    NONE = "None"
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"


def enum_values(enum_cls):
    return [e.value for e in enum_cls]


def _load_json(text):
    if not text:
        return []
    try:
        return json.loads(text)
    except ValueError:
        logger.warning("Could not decode stored list: %r", text[:80])
        return []


def _dump_json(value):
    return json.dumps(value or [])


def _iso(dt):
    return dt.isoformat() if dt else None


# fish profile table, the single "Volt" row owns every other record
class FishProfile(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(80), nullable=False)
    species = db.Column(db.String(120), nullable=False)
    variant = db.Column(db.String(80))
    color = db.Column(db.String(80))
    age = db.Column(db.String(40))
    tank = db.Column(db.String(120))
    acquisition_date = db.Column(db.DateTime)
    profile_picture = db.Column(db.String(255), default='🐠')
    is_picture_emoji = db.Column(db.Boolean, default=True)

    tank_logs = db.relationship('TankLog', backref='fish', lazy=True, cascade="all, delete-orphan")
    maintenance_tasks = db.relationship('MaintenanceTask', backref='fish', lazy=True, cascade="all, delete-orphan")
    plants = db.relationship('Plant', backref='fish', lazy=True, cascade="all, delete-orphan")
    treatment_plans = db.relationship('TreatmentPlan', backref='fish', lazy=True, cascade="all, delete-orphan")
    photos = db.relationship('FishPhoto', backref='fish', lazy=True, cascade="all, delete-orphan")
    notes = db.relationship('Note', backref='fish', lazy=True, cascade="all, delete-orphan")
    notifications = db.relationship('Notification', backref='fish', lazy=True, cascade="all, delete-orphan")


# tank log table
class TankLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    log_datetime = db.Column(db.DateTime, nullable=False, default=datetime.now)
    category = db.Column(db.String(80), default="General")

    # water parameters
    ammonia = db.Column(db.Float)
    nitrite = db.Column(db.Float)
    nitrate = db.Column(db.Float)
    ph = db.Column(db.Float)
    temperature = db.Column(db.Float)

    def __init__(self, **kwargs):
        kwargs.setdefault('log_datetime', datetime.now())
        kwargs.setdefault('category', "General")
        super().__init__(**kwargs)

    def __str__(self):
        return f"{self.log_datetime:%Y-%m-%d %H:%M} - {self.title}"


# maintenance task table
class MaintenanceTask(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(30), nullable=False, default=MaintenanceCategory.OTHER.value)
    scheduled_datetime = db.Column(db.DateTime, nullable=False)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    recurrence_frequency_days = db.Column(db.Integer, default=7)
    last_completed_datetime = db.Column(db.DateTime)
    notifications_enabled = db.Column(db.Boolean, nullable=False, default=True)
    notification_id = db.Column(db.String(32), nullable=False)
    priority = db.Column(db.String(10), default=TaskPriority.MEDIUM.value)

    def __init__(self, **kwargs):
        kwargs.setdefault('scheduled_datetime', datetime.now() + timedelta(days=1))
        kwargs.setdefault('category', MaintenanceCategory.OTHER.value)
        kwargs.setdefault('notifications_enabled', True)
        kwargs.setdefault('is_recurring', False)
        kwargs.setdefault('recurrence_frequency_days', 7)
        kwargs.setdefault('priority', TaskPriority.MEDIUM.value)
        kwargs.setdefault('notification_id', uuid.uuid4().hex)
        super().__init__(**kwargs)

    def get_status(self, now=None):
        return scheduling.compute_status(
            self.scheduled_datetime,
            self.last_completed_datetime,
            self.is_recurring,
            self.recurrence_frequency_days or 0,
            now or datetime.now())

    @property
    def status(self):
        return self.get_status().value

    def get_next_scheduled_datetime(self):
        return scheduling.next_scheduled_datetime(
            self.scheduled_datetime,
            self.last_completed_datetime,
            self.is_recurring,
            self.recurrence_frequency_days or 0)

    @property
    def next_scheduled_datetime(self):
        return self.get_next_scheduled_datetime()

    def mark_completed(self, now=None):
        self.last_completed_datetime, self.scheduled_datetime = scheduling.complete(
            self.scheduled_datetime,
            self.is_recurring,
            self.recurrence_frequency_days or 0,
            now or datetime.now())


# plant table, issues are kept as a json list in one text column
class Plant(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    name = db.Column(db.String(120), nullable=False)
    scientific_name = db.Column(db.String(120))
    added_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    care_notes = db.Column(db.Text)
    location = db.Column(db.String(20), nullable=False, default=PlantLocation.IN_TANK.value)
    light_requirement = db.Column(db.String(10), nullable=False, default=LightLevel.MEDIUM.value)
    issues_json = db.Column('issues', db.Text, default='[]')

    def __init__(self, **kwargs):
        kwargs.setdefault('added_date', datetime.now())
        kwargs.setdefault('location', PlantLocation.IN_TANK.value)
        kwargs.setdefault('light_requirement', LightLevel.MEDIUM.value)
        kwargs.setdefault('issues', [])
        super().__init__(**kwargs)

    @property
    def issues(self):
        return _load_json(self.issues_json)

    @issues.setter
    def issues(self, value):
        self.issues_json = _dump_json(value)

    def add_issue(self, description, severity, date_identified):
        issue = {
            'description': description,
            'severity': IssueSeverity(severity).value,
            'date_identified': _iso(date_identified),
            'is_resolved': False,
            'resolution_date': None,
            'resolution_notes': None,
        }
        issues = self.issues
        issues.append(issue)
        self.issues = issues
        return issue

    def resolve_issue(self, index, resolution_date, resolution_notes):
        issues = self.issues
        if not 0 <= index < len(issues):
            return False

        issues[index]['is_resolved'] = True
        issues[index]['resolution_date'] = _iso(resolution_date)
        issues[index]['resolution_notes'] = resolution_notes
        self.issues = issues
        return True

    def issues_by_date(self):
        return sorted(self.issues, key=lambda i: i.get('date_identified') or '', reverse=True)

    def active_issues(self):
        return [i for i in self.issues_by_date() if not i.get('is_resolved')]


# treatment plan table
class TreatmentPlan(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    illness_name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    end_date = db.Column(db.DateTime)
    status = db.Column(db.String(20), nullable=False, default=TreatmentStatus.ACTIVE.value)
    medication_notes = db.Column(db.Text)

    treatment_logs_json = db.Column('treatment_logs', db.Text, default='[]')
    symptoms_json = db.Column('symptoms', db.Text, default='[]')
    progress_photo_ids_json = db.Column('progress_photo_ids', db.Text, default='[]')

    def __init__(self, **kwargs):
        kwargs.setdefault('start_date', datetime.now())
        kwargs.setdefault('status', TreatmentStatus.ACTIVE.value)
        kwargs.setdefault('treatment_logs', [])
        kwargs.setdefault('symptoms', [])
        kwargs.setdefault('progress_photo_ids', [])
        super().__init__(**kwargs)

    @property
    def treatment_logs(self):
        return _load_json(self.treatment_logs_json)

    @treatment_logs.setter
    def treatment_logs(self, value):
        self.treatment_logs_json = _dump_json(value)

    @property
    def symptoms(self):
        return _load_json(self.symptoms_json)

    @symptoms.setter
    def symptoms(self, value):
        self.symptoms_json = _dump_json(value)

    @property
    def progress_photo_ids(self):
        return _load_json(self.progress_photo_ids_json)

    @progress_photo_ids.setter
    def progress_photo_ids(self, value):
        self.progress_photo_ids_json = _dump_json(value)

    def add_treatment_log(self, date, actions, notes):
        log = {'date': _iso(date), 'actions': actions, 'notes': notes}
        logs = self.treatment_logs
        logs.append(log)
        self.treatment_logs = logs
        return log

    def add_symptom(self, name, severity, now=None):
        now = now or datetime.now()
        severity = SymptomSeverity(severity).value
        symptom = {
            'name': name,
            'severity': severity,
            'history': [
                {'date': _iso(now), 'severity': severity, 'notes': "Initial observation"}
            ],
        }
        symptoms = self.symptoms
        symptoms.append(symptom)
        self.symptoms = symptoms
        return symptom

    def update_symptom_severity(self, index, new_severity, notes, now=None):
        symptoms = self.symptoms
        if not 0 <= index < len(symptoms):
            return False

        now = now or datetime.now()
        new_severity = SymptomSeverity(new_severity).value
        symptom = symptoms[index]
        symptom['severity'] = new_severity
        symptom.setdefault('history', []).append(
            {'date': _iso(now), 'severity': new_severity, 'notes': notes})
        self.symptoms = symptoms
        return True

    def complete_treatment(self, outcome, now=None):
        now = now or datetime.now()
        self.status = TreatmentStatus.COMPLETED.value
        self.end_date = now
        self.add_treatment_log(now, "Treatment completed", outcome)

    def discontinue_treatment(self, reason, now=None):
        now = now or datetime.now()
        self.status = TreatmentStatus.DISCONTINUED.value
        self.end_date = now
        self.add_treatment_log(now, "Treatment discontinued", reason)

    def add_progress_photo(self, photo_id):
        ids = self.progress_photo_ids
        if photo_id not in ids:
            ids.append(photo_id)
            self.progress_photo_ids = ids

    def remove_progress_photo(self, photo_id):
        ids = self.progress_photo_ids
        if photo_id in ids:
            ids.remove(photo_id)
            self.progress_photo_ids = ids
            return True
        return False

    def logs_by_date(self):
        return sorted(self.treatment_logs, key=lambda l: l.get('date') or '', reverse=True)


# photo table, the file itself lives in the upload folder
class FishPhoto(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    caption = db.Column(db.String(255))
    description = db.Column(db.Text)
    date_taken = db.Column(db.DateTime, nullable=False, default=datetime.now)
    file_path = db.Column(db.String(255), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(80), default="General")
    is_treatment_photo = db.Column(db.Boolean, nullable=False, default=False)
    # by convention only, no foreign key
    treatment_plan_id = db.Column(db.Integer)

    def __init__(self, **kwargs):
        kwargs.setdefault('date_taken', datetime.now())
        kwargs.setdefault('category', "General")
        kwargs.setdefault('is_treatment_photo', False)
        super().__init__(**kwargs)

    @property
    def full_path(self):
        return os.path.join(self.file_path, self.file_name)


# note table
class Note(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_datetime = db.Column(db.DateTime, nullable=False, default=datetime.now)
    modified_datetime = db.Column(db.DateTime, nullable=False, default=datetime.now)
    tags = db.Column(db.String(255), default="")

    def __init__(self, **kwargs):
        now = datetime.now()
        kwargs.setdefault('created_datetime', now)
        kwargs.setdefault('modified_datetime', now)
        kwargs.setdefault('tags', "")
        super().__init__(**kwargs)

    def update(self, title, content, tags, now=None):
        self.title = title
        self.content = content
        self.tags = tags
        self.modified_datetime = now or datetime.now()

    def tag_list(self):
        return split_tags(self.tags)


# notification table, scheduled reminders and immediate messages
class Notification(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    fish_id = db.Column(db.Integer, db.ForeignKey('fish_profile.id', ondelete="CASCADE"), nullable=True)

    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    tag = db.Column(db.String(64))
    group = db.Column(db.String(64))
    kind = db.Column(db.String(20), default="info")
    deliver_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)
    read = db.Column(db.Boolean, nullable=False, default=False)

    def is_due(self, now=None):
        return self.deliver_at <= (now or datetime.now())
