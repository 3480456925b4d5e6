from datetime import datetime
from flask_restx import Namespace, Resource, fields
from app.extensions import db
from app.models import FishProfile, MaintenanceTask, TreatmentPlan, TreatmentStatus
from app.scheduling import MaintenanceStatus
from app.utils import date_field

fish_ns = Namespace('fish', description='Fish profile operations')

fish_model = fish_ns.model('FishProfile', {
    'id': fields.Integer(readonly=True),
    'name': fields.String(required=True),
    'species': fields.String(required=True),
    'variant': fields.String,
    'color': fields.String,
    'age': fields.String,
    'tank': fields.String,
    'acquisition_date': fields.DateTime,
    'profile_picture': fields.String,
    'is_picture_emoji': fields.Boolean
})

picture_model = fish_ns.model('ProfilePicture', {
    'profile_picture': fields.String(required=True),
    'is_picture_emoji': fields.Boolean(default=True)
})

summary_model = fish_ns.model('FishSummary', {
    'fish_id': fields.Integer,
    'name': fields.String,
    'tank_logs': fields.Integer,
    'maintenance_tasks': fields.Integer,
    'overdue_tasks': fields.List(fields.String),
    'plants': fields.Integer,
    'active_treatments': fields.List(fields.String),
    'photos': fields.Integer,
    'notes': fields.Integer,
    'unread_notifications': fields.Integer
})

PROFILE_FIELDS = ('name', 'species', 'variant', 'color', 'age', 'tank', 'profile_picture', 'is_picture_emoji')


def build_summary(fish, now=None):
    now = now or datetime.now()
    tasks = MaintenanceTask.query.filter_by(fish_id=fish.id).all()
    treatments = TreatmentPlan.query.filter_by(fish_id=fish.id, status=TreatmentStatus.ACTIVE.value).all()

    return {
        'fish_id': fish.id,
        'name': fish.name,
        'tank_logs': len(fish.tank_logs),
        'maintenance_tasks': len(tasks),
        'overdue_tasks': [t.title for t in tasks if t.get_status(now) == MaintenanceStatus.OVERDUE],
        'plants': len(fish.plants),
        'active_treatments': [t.illness_name for t in treatments],
        'photos': len(fish.photos),
        'notes': len(fish.notes),
        'unread_notifications': len([n for n in fish.notifications if not n.read and n.is_due(now)])
    }


# 1. Resource: Fish profile
"""
the fish the whole app is about, one profile row
"""
@fish_ns.route('/fish')
class FishList(Resource):
    # get: list fish profiles
    @fish_ns.marshal_list_with(fish_model)
    def get(self):
        return FishProfile.query.all()

    # post: add a fish profile
    @fish_ns.expect(fish_model, validate=True)
    @fish_ns.marshal_with(fish_model)
    def post(self):
        data = fish_ns.payload
        fish = FishProfile(name=data['name'],
                           species=data['species'],
                           variant=data.get('variant'),
                           color=data.get('color'),
                           age=data.get('age'),
                           tank=data.get('tank'),
                           acquisition_date=date_field(data, 'acquisition_date'),
                           profile_picture=data.get('profile_picture') or '🐠',
                           is_picture_emoji=data.get('is_picture_emoji', True))

        db.session.add(fish)
        db.session.commit()
        return fish, 201


@fish_ns.route('/fish/<int:id>')
@fish_ns.response(404, 'fish not found')
class FishResource(Resource):
    # get: retrieves the profile
    @fish_ns.marshal_with(fish_model)
    def get(self, id):
        return FishProfile.query.get_or_404(id)

    # patch: update profile information
    @fish_ns.expect(fish_model, validate=False)
    @fish_ns.marshal_with(fish_model)
    def patch(self, id):
        fish = FishProfile.query.get_or_404(id)
        data = fish_ns.payload
        for key in PROFILE_FIELDS:
            if key in data:
                setattr(fish, key, data[key])
        if 'acquisition_date' in data:
            fish.acquisition_date = date_field(data, 'acquisition_date')

        db.session.commit()
        return fish

    # delete: removes the profile and everything recorded for it
    def delete(self, id):
        fish = FishProfile.query.get_or_404(id)
        db.session.delete(fish)
        db.session.commit()
        return '', 204


@fish_ns.route('/fish/<int:id>/profile-picture')
class FishProfilePicture(Resource):
    @fish_ns.expect(picture_model, validate=True)
    @fish_ns.marshal_with(fish_model)
    def patch(self, id):
        fish = FishProfile.query.get_or_404(id)
        data = fish_ns.payload
        fish.profile_picture = data['profile_picture']
        fish.is_picture_emoji = data.get('is_picture_emoji', True)

        db.session.commit()
        return fish


@fish_ns.route('/fish/<int:id>/summary')
class FishSummary(Resource):
    # get: dashboard counts for the home screen
    @fish_ns.marshal_with(summary_model)
    def get(self, id):
        fish = FishProfile.query.get_or_404(id)
        return build_summary(fish)
