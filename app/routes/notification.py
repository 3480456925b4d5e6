from datetime import datetime
from flask_restx import Namespace, Resource, fields, inputs
from app import extensions
from app.extensions import db
from app.models import Notification

notification_ns = Namespace('notifications', description='Reminder and notification operations')

notification_model = notification_ns.model('Notification', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'title': fields.String,
    'message': fields.String,
    'kind': fields.String,
    'tag': fields.String,
    'deliver_at': fields.DateTime,
    'created_at': fields.DateTime,
    'read': fields.Boolean
})

# notification filter parser
notification_filter_parser = notification_ns.parser()
notification_filter_parser.add_argument('unread', type=inputs.boolean, required=False, default=False, location='args')
notification_filter_parser.add_argument('include_scheduled', type=inputs.boolean, required=False, default=False, location='args')


# 8. Resource: Notifications
"""
maintenance reminders and other messages; a scheduled reminder shows up once its time has come
"""
@notification_ns.route('/notifications')
class NotificationList(Resource):
    @notification_ns.expect(notification_filter_parser)
    @notification_ns.marshal_list_with(notification_model)
    def get(self):
        args = notification_filter_parser.parse_args()
        query = Notification.query
        if not args.get('include_scheduled'):
            query = query.filter(Notification.deliver_at <= datetime.now())
        if args.get('unread'):
            query = query.filter_by(read=False)

        return query.order_by(Notification.deliver_at.desc()).all()


@notification_ns.route('/notifications/<int:id>')
@notification_ns.response(404, 'notification not found')
class NotificationResource(Resource):
    @notification_ns.marshal_with(notification_model)
    def get(self, id):
        return Notification.query.get_or_404(id)

    def delete(self, id):
        notification = Notification.query.get_or_404(id)
        db.session.delete(notification)
        db.session.commit()
        return '', 204


@notification_ns.route('/notifications/<int:id>/read')
@notification_ns.response(404, 'notification not found')
class NotificationRead(Resource):
    @notification_ns.marshal_with(notification_model)
    def post(self, id):
        notification = Notification.query.get_or_404(id)
        notification.read = True
        db.session.commit()
        return notification


@notification_ns.route('/notifications/read-all')
class NotificationReadAll(Resource):
    def post(self):
        updated = Notification.query.filter_by(read=False) \
            .filter(Notification.deliver_at <= datetime.now()) \
            .update({'read': True}, synchronize_session='fetch')
        db.session.commit()
        return {'updated': updated}, 200


@notification_ns.route('/notifications/check-overdue')
class NotificationCheckOverdue(Resource):
    # post: raise a notification for every overdue task right away
    @notification_ns.marshal_list_with(notification_model)
    def post(self):
        if extensions.notification_service is None:
            notification_ns.abort(503, 'Notification service not running')
        return extensions.notification_service.check_for_overdue_tasks()
