from datetime import datetime
from flask import request
from flask_restx import Namespace, Resource, fields
from app.extensions import db
from app.filters import filter_plants
from app.models import FishProfile, Plant, PlantLocation, LightLevel, IssueSeverity, enum_values
from app.utils import date_field, enum_field

plant_ns = Namespace('plants', description='Plant operations')

issue_model = plant_ns.model('PlantIssue', {
    'description': fields.String(required=True),
    'severity': fields.String(enum=enum_values(IssueSeverity)),
    'date_identified': fields.String,
    'is_resolved': fields.Boolean,
    'resolution_date': fields.String,
    'resolution_notes': fields.String
})

plant_model = plant_ns.model('Plant', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'name': fields.String(required=True),
    'scientific_name': fields.String(),
    'added_date': fields.DateTime,
    'care_notes': fields.String,
    'location': fields.String(enum=enum_values(PlantLocation)),
    'light_requirement': fields.String(enum=enum_values(LightLevel)),
    'issues': fields.List(fields.Nested(issue_model), readonly=True),
    'active_issues': fields.List(fields.Nested(issue_model), attribute=lambda p: p.active_issues(), readonly=True)
})

issue_input_model = plant_ns.model('PlantIssueInput', {
    'description': fields.String(required=True),
    'severity': fields.String(required=True, enum=enum_values(IssueSeverity)),
    'date_identified': fields.String
})

resolve_input_model = plant_ns.model('PlantIssueResolve', {
    'resolution_date': fields.String,
    'resolution_notes': fields.String
})

# plant filter parser
plant_filter_parser = plant_ns.parser()
plant_filter_parser.add_argument('search', type=str, required=False, location='args')
plant_filter_parser.add_argument('location', type=str, required=False, location='args')


# 4. Resource: Plants
"""
live plants in the tank, in quarantine or being prepared
"""
@plant_ns.route('/plants')
class PlantList(Resource):
    # get: list plants by name, filtered by search text and location
    @plant_ns.expect(plant_filter_parser)
    @plant_ns.marshal_list_with(plant_model)
    def get(self):
        args = plant_filter_parser.parse_args()
        location = args.get('location')
        if location:
            location = enum_field(PlantLocation, args, 'location')
        return filter_plants(Plant.query.all(), search=args.get('search'), location=location)

    # post: add new plant
    @plant_ns.expect(plant_model, validate=True)
    @plant_ns.marshal_with(plant_model)
    def post(self):
        data = plant_ns.payload

        fish_id = data.get('fish_id')
        if fish_id is not None and FishProfile.query.get(fish_id) is None:
            plant_ns.abort(404, f"fish with id {fish_id} not found")

        plant = Plant(name=data['name'],
                      scientific_name=data.get('scientific_name'),
                      care_notes=data.get('care_notes'),
                      location=enum_field(PlantLocation, data, 'location', PlantLocation.IN_TANK.value),
                      light_requirement=enum_field(LightLevel, data, 'light_requirement', LightLevel.MEDIUM.value),
                      fish_id=fish_id)
        added_date = date_field(data, 'added_date')
        if added_date:
            plant.added_date = added_date

        db.session.add(plant)
        db.session.commit()
        return plant, 201


@plant_ns.route('/plants/<int:id>')
@plant_ns.response(404, 'plant not found')
class PlantResource(Resource):
    # get: retrieves the one plant
    @plant_ns.marshal_with(plant_model)
    def get(self, id):
        return Plant.query.get_or_404(id)

    # patch: update plant information
    @plant_ns.expect(plant_model, validate=False)
    @plant_ns.marshal_with(plant_model)
    def patch(self, id):
        plant = Plant.query.get_or_404(id)
        data = plant_ns.payload
        if 'name' in data: plant.name = data['name']
        if 'scientific_name' in data: plant.scientific_name = data['scientific_name']
        if 'care_notes' in data: plant.care_notes = data['care_notes']
        if 'location' in data: plant.location = enum_field(PlantLocation, data, 'location', plant.location)
        if 'light_requirement' in data:
            plant.light_requirement = enum_field(LightLevel, data, 'light_requirement', plant.light_requirement)
        if 'added_date' in data: plant.added_date = date_field(data, 'added_date', plant.added_date)

        db.session.commit()
        return plant

    # delete: delete the plant
    def delete(self, id):
        plant = Plant.query.get_or_404(id)
        db.session.delete(plant)
        db.session.commit()
        return '', 204


@plant_ns.route('/plants/<int:id>/issues')
@plant_ns.response(404, 'plant not found')
class PlantIssueList(Resource):
    # get: all issues, newest first
    @plant_ns.marshal_list_with(issue_model)
    def get(self, id):
        return Plant.query.get_or_404(id).issues_by_date()

    # post: record a new issue for the plant
    @plant_ns.expect(issue_input_model, validate=True)
    @plant_ns.marshal_with(plant_model)
    def post(self, id):
        plant = Plant.query.get_or_404(id)
        data = plant_ns.payload
        severity = enum_field(IssueSeverity, data, 'severity')
        identified = date_field(data, 'date_identified', default=datetime.now())

        plant.add_issue(data['description'], severity, identified)
        db.session.commit()
        return plant, 201


@plant_ns.route('/plants/<int:id>/issues/<int:index>/resolve')
@plant_ns.response(404, 'plant or issue not found')
class PlantIssueResolve(Resource):
    # post: mark the issue at this position resolved
    @plant_ns.expect(resolve_input_model, validate=False)
    @plant_ns.marshal_with(plant_model)
    def post(self, id, index):
        plant = Plant.query.get_or_404(id)
        data = request.get_json(silent=True) or {}
        resolved_on = date_field(data, 'resolution_date', default=datetime.now())

        if not plant.resolve_issue(index, resolved_on, data.get('resolution_notes')):
            plant_ns.abort(404, f"issue {index} not found")

        db.session.commit()
        return plant


@plant_ns.route('/fish/<int:fish_id>/plants')
@plant_ns.response(404, 'fish not found')
class FishPlantList(Resource):
    @plant_ns.expect(plant_filter_parser)
    @plant_ns.marshal_list_with(plant_model)
    def get(self, fish_id):
        FishProfile.query.get_or_404(fish_id)
        args = plant_filter_parser.parse_args()
        location = args.get('location')
        if location:
            location = enum_field(PlantLocation, args, 'location')
        return filter_plants(Plant.query.filter_by(fish_id=fish_id).all(),
                             search=args.get('search'),
                             location=location)
