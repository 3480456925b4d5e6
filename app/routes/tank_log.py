from flask_restx import Namespace, Resource, fields
from app.extensions import db
from app.filters import filter_tank_logs, distinct_categories
from app.models import FishProfile, TankLog
from app.utils import date_field

logs_ns = Namespace('tank-logs', description='Tank log operations')

tank_log_model = logs_ns.model('TankLog', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'title': fields.String(required=True),
    'description': fields.String(required=True),
    'log_datetime': fields.DateTime,
    'category': fields.String(default="General"),
    'ammonia': fields.Float,
    'nitrite': fields.Float,
    'nitrate': fields.Float,
    'ph': fields.Float,
    'temperature': fields.Float,
    'summary': fields.String(attribute=lambda log: str(log), readonly=True)
})

# tank log filter parser
log_filter_parser = logs_ns.parser()
log_filter_parser.add_argument('search', type=str, required=False, location='args')
log_filter_parser.add_argument('category', type=str, required=False, location='args')

EDITABLE_FIELDS = ('title', 'description', 'category', 'ammonia', 'nitrite', 'nitrate', 'ph', 'temperature')


def check_fish(fish_id):
    if fish_id is not None and FishProfile.query.get(fish_id) is None:
        logs_ns.abort(404, f"fish with id {fish_id} not found")


# 2. Resource: Tank logs
"""
observations and water tests recorded for the tank
"""
@logs_ns.route('/tank-logs')
class TankLogList(Resource):
    # get: list logs, newest first, with search and category filter
    @logs_ns.expect(log_filter_parser)
    @logs_ns.marshal_list_with(tank_log_model)
    def get(self):
        args = log_filter_parser.parse_args()
        return filter_tank_logs(TankLog.query.all(), search=args.get('search'), category=args.get('category'))

    # post: add a log entry
    @logs_ns.expect(tank_log_model, validate=True)
    @logs_ns.marshal_with(tank_log_model)
    def post(self):
        data = logs_ns.payload
        check_fish(data.get('fish_id'))

        log = TankLog(title=data['title'],
                      description=data['description'],
                      category=data.get('category') or "General",
                      fish_id=data.get('fish_id'),
                      ammonia=data.get('ammonia'),
                      nitrite=data.get('nitrite'),
                      nitrate=data.get('nitrate'),
                      ph=data.get('ph'),
                      temperature=data.get('temperature'))
        log_datetime = date_field(data, 'log_datetime', warn_future=True)
        if log_datetime:
            log.log_datetime = log_datetime

        db.session.add(log)
        db.session.commit()
        return log, 201


@logs_ns.route('/tank-logs/<int:id>')
@logs_ns.response(404, 'tank log not found')
class TankLogResource(Resource):
    # get: retrieves one log
    @logs_ns.marshal_with(tank_log_model)
    def get(self, id):
        return TankLog.query.get_or_404(id)

    # patch: update the log
    @logs_ns.expect(tank_log_model, validate=False)
    @logs_ns.marshal_with(tank_log_model)
    def patch(self, id):
        log = TankLog.query.get_or_404(id)
        data = logs_ns.payload
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(log, key, data[key])
        if 'log_datetime' in data:
            log.log_datetime = date_field(data, 'log_datetime', default=log.log_datetime)

        db.session.commit()
        return log

    # delete: delete the log
    def delete(self, id):
        log = TankLog.query.get_or_404(id)
        db.session.delete(log)
        db.session.commit()
        return '', 204


@logs_ns.route('/tank-logs/categories')
class TankLogCategories(Resource):
    # get: categories in use, for the filter dropdown
    def get(self):
        return distinct_categories(TankLog.query.all())


@logs_ns.route('/fish/<int:fish_id>/tank-logs')
class FishTankLogHistory(Resource):
    @logs_ns.marshal_list_with(tank_log_model)
    def get(self, fish_id):
        FishProfile.query.get_or_404(fish_id)
        return filter_tank_logs(TankLog.query.filter_by(fish_id=fish_id).all())
