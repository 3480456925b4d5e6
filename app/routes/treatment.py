from datetime import datetime
from flask import request
from flask_restx import Namespace, Resource, fields
from app import extensions
from app.extensions import db
from app.filters import filter_treatments
from app.models import FishProfile, FishPhoto, TreatmentPlan, TreatmentStatus, SymptomSeverity, enum_values
from app.services.image_service import validate_image_format
from app.utils import date_field, enum_field
from werkzeug.datastructures import FileStorage

treatment_ns = Namespace('treatments', description='Treatment plan operations')

treatment_log_model = treatment_ns.model('TreatmentLog', {
    'date': fields.String,
    'actions': fields.String,
    'notes': fields.String
})

symptom_history_model = treatment_ns.model('SymptomHistory', {
    'date': fields.String,
    'severity': fields.String,
    'notes': fields.String
})

symptom_model = treatment_ns.model('Symptom', {
    'name': fields.String,
    'severity': fields.String(enum=enum_values(SymptomSeverity)),
    'history': fields.List(fields.Nested(symptom_history_model))
})

treatment_model = treatment_ns.model('TreatmentPlan', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'illness_name': fields.String(required=True),
    'description': fields.String,
    'start_date': fields.DateTime,
    'end_date': fields.DateTime(readonly=True),
    'status': fields.String(enum=enum_values(TreatmentStatus)),
    'medication_notes': fields.String,
    'treatment_logs': fields.List(fields.Nested(treatment_log_model), attribute=lambda t: t.logs_by_date(), readonly=True),
    'symptoms': fields.List(fields.Nested(symptom_model), readonly=True),
    'progress_photo_ids': fields.List(fields.Integer, readonly=True)
})

log_input_model = treatment_ns.model('TreatmentLogInput', {
    'date': fields.String,
    'actions': fields.String(required=True),
    'notes': fields.String
})

symptom_input_model = treatment_ns.model('SymptomInput', {
    'name': fields.String(required=True),
    'severity': fields.String(required=True, enum=enum_values(SymptomSeverity))
})

symptom_update_model = treatment_ns.model('SymptomUpdate', {
    'severity': fields.String(required=True, enum=enum_values(SymptomSeverity)),
    'notes': fields.String
})

outcome_model = treatment_ns.model('TreatmentOutcome', {
    'outcome': fields.String
})

photo_summary_model = treatment_ns.model('TreatmentPhoto', {
    'id': fields.Integer,
    'caption': fields.String,
    'date_taken': fields.DateTime,
    'file_name': fields.String,
    'treatment_plan_id': fields.Integer
})

# treatment filter parser
treatment_filter_parser = treatment_ns.parser()
treatment_filter_parser.add_argument('search', type=str, required=False, location='args')
treatment_filter_parser.add_argument('status', type=str, required=False, location='args')

# progress photo upload parser
photo_upload_parser = treatment_ns.parser()
photo_upload_parser.add_argument('file', location='files', type=FileStorage, required=True)
photo_upload_parser.add_argument('caption', location='form', type=str, required=False)


# 5. Resource: Treatment plans
"""
an illness episode: symptoms tracked over time, a daily log of what was done
"""
@treatment_ns.route('/treatments')
class TreatmentList(Resource):
    # get: newest plans first, filtered by search text and status
    @treatment_ns.expect(treatment_filter_parser)
    @treatment_ns.marshal_list_with(treatment_model)
    def get(self):
        args = treatment_filter_parser.parse_args()
        status = args.get('status')
        if status:
            status = enum_field(TreatmentStatus, args, 'status')
        return filter_treatments(TreatmentPlan.query.all(), search=args.get('search'), status=status)

    # post: start a treatment plan
    @treatment_ns.expect(treatment_model, validate=True)
    @treatment_ns.marshal_with(treatment_model)
    def post(self):
        data = treatment_ns.payload

        fish_id = data.get('fish_id')
        if fish_id is not None and FishProfile.query.get(fish_id) is None:
            treatment_ns.abort(404, f"fish with id {fish_id} not found")

        plan = TreatmentPlan(illness_name=data['illness_name'],
                             description=data.get('description'),
                             medication_notes=data.get('medication_notes'),
                             status=enum_field(TreatmentStatus, data, 'status', TreatmentStatus.ACTIVE.value),
                             fish_id=fish_id)
        start_date = date_field(data, 'start_date')
        if start_date:
            plan.start_date = start_date

        db.session.add(plan)
        db.session.commit()
        return plan, 201


@treatment_ns.route('/treatments/<int:id>')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentResource(Resource):
    # get: retrieves one plan
    @treatment_ns.marshal_with(treatment_model)
    def get(self, id):
        return TreatmentPlan.query.get_or_404(id)

    # patch: update the plan's own fields; logs and symptoms have their own endpoints
    @treatment_ns.expect(treatment_model, validate=False)
    @treatment_ns.marshal_with(treatment_model)
    def patch(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        data = treatment_ns.payload
        if 'illness_name' in data: plan.illness_name = data['illness_name']
        if 'description' in data: plan.description = data['description']
        if 'medication_notes' in data: plan.medication_notes = data['medication_notes']
        if 'status' in data: plan.status = enum_field(TreatmentStatus, data, 'status', plan.status)
        if 'start_date' in data: plan.start_date = date_field(data, 'start_date', plan.start_date)

        db.session.commit()
        return plan

    # delete: delete the plan; its progress photos are kept in the gallery
    def delete(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        db.session.delete(plan)
        db.session.commit()
        return '', 204


@treatment_ns.route('/treatments/<int:id>/logs')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentLogList(Resource):
    # get: daily logs, newest first
    @treatment_ns.marshal_list_with(treatment_log_model)
    def get(self, id):
        return TreatmentPlan.query.get_or_404(id).logs_by_date()

    # post: add a daily log entry
    @treatment_ns.expect(log_input_model, validate=True)
    @treatment_ns.marshal_with(treatment_model)
    def post(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        data = treatment_ns.payload
        plan.add_treatment_log(date_field(data, 'date', default=datetime.now()), data['actions'], data.get('notes'))

        db.session.commit()
        return plan, 201


@treatment_ns.route('/treatments/<int:id>/symptoms')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentSymptomList(Resource):
    @treatment_ns.marshal_list_with(symptom_model)
    def get(self, id):
        return TreatmentPlan.query.get_or_404(id).symptoms

    # post: start tracking a symptom
    @treatment_ns.expect(symptom_input_model, validate=True)
    @treatment_ns.marshal_with(treatment_model)
    def post(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        data = treatment_ns.payload
        plan.add_symptom(data['name'], enum_field(SymptomSeverity, data, 'severity'))

        db.session.commit()
        return plan, 201


@treatment_ns.route('/treatments/<int:id>/symptoms/<int:index>')
@treatment_ns.response(404, 'treatment plan or symptom not found')
class TreatmentSymptomResource(Resource):
    # patch: record a severity change for the symptom at this position
    @treatment_ns.expect(symptom_update_model, validate=True)
    @treatment_ns.marshal_with(treatment_model)
    def patch(self, id, index):
        plan = TreatmentPlan.query.get_or_404(id)
        data = treatment_ns.payload
        severity = enum_field(SymptomSeverity, data, 'severity')

        if not plan.update_symptom_severity(index, severity, data.get('notes')):
            treatment_ns.abort(404, f"symptom {index} not found")

        db.session.commit()
        return plan


@treatment_ns.route('/treatments/<int:id>/complete')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentComplete(Resource):
    @treatment_ns.expect(outcome_model, validate=False)
    @treatment_ns.marshal_with(treatment_model)
    def post(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        if plan.status != TreatmentStatus.ACTIVE.value:
            treatment_ns.abort(400, "Only an active treatment can be completed.")

        data = request.get_json(silent=True) or {}
        plan.complete_treatment(data.get('outcome'))
        db.session.commit()

        if extensions.notification_service is not None:
            extensions.notification_service.show_notification(
                "Treatment Completed",
                f"Treatment for '{plan.illness_name}' has been marked as completed.",
                fish_id=plan.fish_id)
        return plan


@treatment_ns.route('/treatments/<int:id>/discontinue')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentDiscontinue(Resource):
    @treatment_ns.expect(outcome_model, validate=False)
    @treatment_ns.marshal_with(treatment_model)
    def post(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        if plan.status != TreatmentStatus.ACTIVE.value:
            treatment_ns.abort(400, "Only an active treatment can be discontinued.")

        data = request.get_json(silent=True) or {}
        plan.discontinue_treatment(data.get('outcome'))
        db.session.commit()
        return plan


@treatment_ns.route('/treatments/<int:id>/photos')
@treatment_ns.response(404, 'treatment plan not found')
class TreatmentPhotoList(Resource):
    # get: progress photos, in the order they were added
    @treatment_ns.marshal_list_with(photo_summary_model)
    def get(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        photos = {p.id: p for p in FishPhoto.query.filter_by(treatment_plan_id=plan.id).all()}
        return [photos[pid] for pid in plan.progress_photo_ids if pid in photos]

    # post: upload a progress photo for this plan
    @treatment_ns.expect(photo_upload_parser)
    @treatment_ns.marshal_with(photo_summary_model)
    def post(self, id):
        plan = TreatmentPlan.query.get_or_404(id)
        args = photo_upload_parser.parse_args()
        file = args['file']

        if not validate_image_format(file.filename):
            treatment_ns.abort(400, "Invalid file format.")

        try:
            photo = extensions.image_service.save_image(file,
                                                        caption=args.get('caption'),
                                                        category="Treatment",
                                                        is_treatment_photo=True,
                                                        treatment_plan_id=plan.id,
                                                        fish_id=plan.fish_id)
        except OSError as e:
            db.session.rollback()
            treatment_ns.abort(500, f"Error saving image: {e}")

        plan.add_progress_photo(photo.id)
        db.session.commit()
        return photo, 201


@treatment_ns.route('/treatments/<int:id>/photos/<int:photo_id>')
@treatment_ns.response(404, 'treatment plan or photo not found')
class TreatmentPhotoResource(Resource):
    # delete: drop the photo from the plan and delete the file
    def delete(self, id, photo_id):
        plan = TreatmentPlan.query.get_or_404(id)
        photo = FishPhoto.query.get_or_404(photo_id)

        plan.remove_progress_photo(photo.id)
        db.session.commit()

        if not extensions.image_service.delete_image(photo):
            treatment_ns.abort(500, "Could not delete the photo.")
        return '', 204
