from flask_restx import Namespace, Resource, fields, inputs
from app import extensions
from app.extensions import db
from app.filters import filter_maintenance_tasks
from app.models import FishProfile, MaintenanceTask, MaintenanceCategory, TaskPriority, enum_values
from app.scheduling import validate_recurrence
from app.utils import date_field, enum_field, int_field, bool_field

maintenance_ns = Namespace('maintenance', description='Maintenance task operations')

task_model = maintenance_ns.model('MaintenanceTask', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'title': fields.String(required=True),
    'description': fields.String,
    'category': fields.String(enum=enum_values(MaintenanceCategory)),
    'scheduled_datetime': fields.DateTime,
    'is_recurring': fields.Boolean,
    'recurrence_frequency_days': fields.Integer,
    'last_completed_datetime': fields.DateTime,
    'notifications_enabled': fields.Boolean,
    'notification_id': fields.String(readonly=True),
    'priority': fields.String(enum=enum_values(TaskPriority)),
    'status': fields.String(readonly=True),
    'next_scheduled_datetime': fields.DateTime(readonly=True)
})

status_model = maintenance_ns.model('MaintenanceStatus', {
    'id': fields.Integer,
    'status': fields.String,
    'scheduled_datetime': fields.DateTime,
    'last_completed_datetime': fields.DateTime,
    'next_scheduled_datetime': fields.DateTime
})

# task filter parser
task_filter_parser = maintenance_ns.parser()
task_filter_parser.add_argument('search', type=str, required=False, location='args')
task_filter_parser.add_argument('category', type=str, required=False, location='args')
task_filter_parser.add_argument('show_completed', type=inputs.boolean, required=False, default=True, location='args')

RECURRENCE_ERROR = "A recurring task needs a recurrence interval of at least one day."


def refresh_notification(task):
    """Keeps the task's reminder in line with its current settings."""
    service = extensions.notification_service
    if service is None:
        return
    if task.notifications_enabled:
        service.schedule_notification(task)
    else:
        service.cancel_notification(task)


# 3. Resource: Maintenance tasks
"""
water changes, feeding, filter cleaning... scheduled and optionally recurring
"""
@maintenance_ns.route('/maintenance-tasks')
class MaintenanceTaskList(Resource):
    # get: overdue tasks first, then by next due time
    @maintenance_ns.expect(task_filter_parser)
    @maintenance_ns.marshal_list_with(task_model)
    def get(self):
        args = task_filter_parser.parse_args()
        category = args.get('category')
        if category:
            category = enum_field(MaintenanceCategory, args, 'category')

        return filter_maintenance_tasks(MaintenanceTask.query.all(),
                                        search=args.get('search'),
                                        category=category,
                                        show_completed=args.get('show_completed'))

    # post: add a task and schedule its reminder
    @maintenance_ns.expect(task_model, validate=True)
    @maintenance_ns.marshal_with(task_model)
    def post(self):
        data = maintenance_ns.payload

        fish_id = data.get('fish_id')
        if fish_id is not None and FishProfile.query.get(fish_id) is None:
            maintenance_ns.abort(404, f"fish with id {fish_id} not found")

        task = MaintenanceTask(title=data['title'],
                               description=data.get('description'),
                               category=enum_field(MaintenanceCategory, data, 'category', MaintenanceCategory.OTHER.value),
                               is_recurring=data.get('is_recurring', False),
                               recurrence_frequency_days=data.get('recurrence_frequency_days', 7),
                               notifications_enabled=data.get('notifications_enabled', True),
                               priority=enum_field(TaskPriority, data, 'priority', TaskPriority.MEDIUM.value),
                               fish_id=fish_id)
        scheduled = date_field(data, 'scheduled_datetime')
        if scheduled:
            task.scheduled_datetime = scheduled
        task.last_completed_datetime = date_field(data, 'last_completed_datetime')

        if not validate_recurrence(task.is_recurring, task.recurrence_frequency_days):
            maintenance_ns.abort(400, RECURRENCE_ERROR)

        db.session.add(task)
        db.session.commit()

        if task.notifications_enabled:
            refresh_notification(task)
        return task, 201


@maintenance_ns.route('/maintenance-tasks/<int:id>')
@maintenance_ns.response(404, 'task not found')
class MaintenanceTaskResource(Resource):
    # get: retrieves one task
    @maintenance_ns.marshal_with(task_model)
    def get(self, id):
        return MaintenanceTask.query.get_or_404(id)

    # patch: update the task, reminders follow the new settings
    @maintenance_ns.expect(task_model, validate=False)
    @maintenance_ns.marshal_with(task_model)
    def patch(self, id):
        task = MaintenanceTask.query.get_or_404(id)
        data = maintenance_ns.payload
        is_recurring = bool_field(data, 'is_recurring', task.is_recurring)
        frequency_days = int_field(data, 'recurrence_frequency_days')
        notifications_enabled = bool_field(data, 'notifications_enabled', task.notifications_enabled)

        if 'title' in data: task.title = data['title']
        if 'description' in data: task.description = data['description']
        if 'category' in data: task.category = enum_field(MaintenanceCategory, data, 'category', task.category)
        if 'priority' in data: task.priority = enum_field(TaskPriority, data, 'priority', task.priority)
        if 'is_recurring' in data: task.is_recurring = is_recurring
        if 'recurrence_frequency_days' in data: task.recurrence_frequency_days = frequency_days
        if 'notifications_enabled' in data: task.notifications_enabled = notifications_enabled
        if 'scheduled_datetime' in data:
            task.scheduled_datetime = date_field(data, 'scheduled_datetime', task.scheduled_datetime)
        if 'last_completed_datetime' in data:
            task.last_completed_datetime = date_field(data, 'last_completed_datetime')

        if not validate_recurrence(task.is_recurring, task.recurrence_frequency_days):
            db.session.rollback()
            maintenance_ns.abort(400, RECURRENCE_ERROR)

        db.session.commit()
        refresh_notification(task)
        return task

    # delete: delete the task and its reminder
    def delete(self, id):
        task = MaintenanceTask.query.get_or_404(id)
        if extensions.notification_service is not None:
            extensions.notification_service.cancel_notification(task)
        db.session.delete(task)
        db.session.commit()
        return '', 204


@maintenance_ns.route('/maintenance-tasks/<int:id>/complete')
@maintenance_ns.response(404, 'task not found')
class MaintenanceTaskComplete(Resource):
    # post: mark done now; recurring tasks move to their next occurrence
    @maintenance_ns.marshal_with(task_model)
    def post(self, id):
        task = MaintenanceTask.query.get_or_404(id)
        task.mark_completed()
        db.session.commit()

        service = extensions.notification_service
        if service is not None:
            if task.is_recurring and task.notifications_enabled:
                service.schedule_notification(task)
            else:
                service.cancel_notification(task)

        return task


@maintenance_ns.route('/maintenance-tasks/<int:id>/status')
@maintenance_ns.response(404, 'task not found')
class MaintenanceTaskStatus(Resource):
    @maintenance_ns.marshal_with(status_model)
    def get(self, id):
        return MaintenanceTask.query.get_or_404(id)


@maintenance_ns.route('/fish/<int:fish_id>/maintenance-tasks')
class FishMaintenanceTasks(Resource):
    @maintenance_ns.marshal_list_with(task_model)
    def get(self, fish_id):
        FishProfile.query.get_or_404(fish_id)
        return filter_maintenance_tasks(MaintenanceTask.query.filter_by(fish_id=fish_id).all())
