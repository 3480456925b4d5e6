import io
import os
from flask import send_file
from flask_restx import Namespace, Resource, fields, inputs
from werkzeug.datastructures import FileStorage
from app import extensions
from app.extensions import db
from app.filters import filter_photos, distinct_categories
from app.models import FishProfile, FishPhoto, TreatmentPlan
from app.services.image_service import validate_image_format
from app.utils import date_field

photo_ns = Namespace('photos', description='Photo gallery operations')

photo_model = photo_ns.model('FishPhoto', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'caption': fields.String,
    'description': fields.String,
    'date_taken': fields.DateTime,
    'file_path': fields.String(readonly=True),
    'file_name': fields.String(readonly=True),
    'category': fields.String,
    'is_treatment_photo': fields.Boolean,
    'treatment_plan_id': fields.Integer
})

# upload image parser
upload_parser = photo_ns.parser()
# files
upload_parser.add_argument('file', location='files', type=FileStorage, required=True)
# form for other data sent along with the file
upload_parser.add_argument('caption', location='form', type=str, required=False)
upload_parser.add_argument('description', location='form', type=str, required=False)
upload_parser.add_argument('category', location='form', type=str, required=False)
upload_parser.add_argument('fish_id', location='form', type=int, required=False)
upload_parser.add_argument('treatment_plan_id', location='form', type=int, required=False)

# gallery filter parser
photo_filter_parser = photo_ns.parser()
photo_filter_parser.add_argument('search', type=str, required=False, location='args')
photo_filter_parser.add_argument('category', type=str, required=False, location='args')
photo_filter_parser.add_argument('include_treatment', type=inputs.boolean, required=False, default=False, location='args')

EDITABLE_FIELDS = ('caption', 'description', 'category')


# 6. Resource: Photos
"""
photos of Volt and the tank; the image file is copied into the upload folder
"""
@photo_ns.route('/photos')
class PhotoList(Resource):
    # get: gallery, newest first; treatment photos only on request
    @photo_ns.expect(photo_filter_parser)
    @photo_ns.marshal_list_with(photo_model)
    def get(self):
        args = photo_filter_parser.parse_args()
        return filter_photos(FishPhoto.query.all(),
                             search=args.get('search'),
                             category=args.get('category'),
                             include_treatment=args.get('include_treatment'))

    # post: upload a photo
    @photo_ns.expect(upload_parser)
    @photo_ns.marshal_with(photo_model)
    def post(self):
        args = upload_parser.parse_args()
        file = args['file']

        if not validate_image_format(file.filename):
            photo_ns.abort(400, "Invalid file format.")

        fish_id = args.get('fish_id')
        if fish_id is not None and FishProfile.query.get(fish_id) is None:
            photo_ns.abort(404, f"fish with id {fish_id} not found")

        plan = None
        plan_id = args.get('treatment_plan_id')
        if plan_id is not None:
            plan = TreatmentPlan.query.get(plan_id)
            if plan is None:
                photo_ns.abort(404, f"treatment plan with id {plan_id} not found")

        try:
            photo = extensions.image_service.save_image(file,
                                                        caption=args.get('caption'),
                                                        description=args.get('description'),
                                                        category=args.get('category') or ("Treatment" if plan else "General"),
                                                        is_treatment_photo=plan is not None,
                                                        treatment_plan_id=plan_id,
                                                        fish_id=fish_id)
        except OSError as e:
            db.session.rollback()
            photo_ns.abort(500, f"Error saving image: {e}")

        if plan is not None:
            plan.add_progress_photo(photo.id)
            db.session.commit()

        return photo, 201


@photo_ns.route('/photos/<int:id>')
@photo_ns.response(404, 'photo not found')
class PhotoResource(Resource):
    # get: retrieves the photo record
    @photo_ns.marshal_with(photo_model)
    def get(self, id):
        return FishPhoto.query.get_or_404(id)

    # patch: caption, description, category, date taken
    @photo_ns.expect(photo_model, validate=False)
    @photo_ns.marshal_with(photo_model)
    def patch(self, id):
        photo = FishPhoto.query.get_or_404(id)
        data = photo_ns.payload
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(photo, key, data[key])
        if 'date_taken' in data:
            photo.date_taken = date_field(data, 'date_taken', photo.date_taken)

        db.session.commit()
        return photo

    # delete: delete the file and the record
    def delete(self, id):
        photo = FishPhoto.query.get_or_404(id)

        if photo.treatment_plan_id is not None:
            plan = TreatmentPlan.query.get(photo.treatment_plan_id)
            if plan is not None:
                plan.remove_progress_photo(photo.id)

        if not extensions.image_service.delete_image(photo):
            photo_ns.abort(500, "Could not delete the photo.")
        return '', 204


@photo_ns.route('/photos/<int:id>/file')
@photo_ns.response(404, 'photo not found')
class PhotoFile(Resource):
    # get: the stored image itself
    def get(self, id):
        photo = FishPhoto.query.get_or_404(id)
        if not os.path.exists(photo.full_path):
            photo_ns.abort(404, "image file is missing")
        return send_file(photo.full_path)


@photo_ns.route('/photos/<int:id>/thumbnail')
@photo_ns.response(404, 'photo not found')
class PhotoThumbnail(Resource):
    # get: png thumbnail that fits in 200x200
    def get(self, id):
        photo = FishPhoto.query.get_or_404(id)
        data = extensions.image_service.thumbnail_bytes(photo)
        if data is None:
            photo_ns.abort(404, "image could not be loaded")
        return send_file(io.BytesIO(data), mimetype='image/png')


@photo_ns.route('/photos/categories')
class PhotoCategories(Resource):
    def get(self):
        return distinct_categories(FishPhoto.query.filter_by(is_treatment_photo=False).all())
