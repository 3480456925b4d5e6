from flask_restx import Namespace, Resource, fields
from app.extensions import db
from app.filters import filter_notes, all_tags
from app.models import FishProfile, Note

note_ns = Namespace('notes', description='Note operations')

note_model = note_ns.model('Note', {
    'id': fields.Integer(readonly=True),
    'fish_id': fields.Integer,
    'title': fields.String(required=True),
    'content': fields.String(required=True),
    'created_datetime': fields.DateTime(readonly=True),
    'modified_datetime': fields.DateTime(readonly=True),
    'tags': fields.String,
    'tag_list': fields.List(fields.String, attribute=lambda n: n.tag_list(), readonly=True)
})

# note filter parser
note_filter_parser = note_ns.parser()
note_filter_parser.add_argument('search', type=str, required=False, location='args')
note_filter_parser.add_argument('tag', type=str, required=False, location='args')


# 7. Resource: Notes
"""
free-form notes, tagged with a comma separated list
"""
@note_ns.route('/notes')
class NoteList(Resource):
    # get: most recently edited first
    @note_ns.expect(note_filter_parser)
    @note_ns.marshal_list_with(note_model)
    def get(self):
        args = note_filter_parser.parse_args()
        return filter_notes(Note.query.all(), search=args.get('search'), tag=args.get('tag'))

    # post: add a note
    @note_ns.expect(note_model, validate=True)
    @note_ns.marshal_with(note_model)
    def post(self):
        data = note_ns.payload

        fish_id = data.get('fish_id')
        if fish_id is not None and FishProfile.query.get(fish_id) is None:
            note_ns.abort(404, f"fish with id {fish_id} not found")

        note = Note(title=data['title'], content=data['content'], tags=data.get('tags') or "", fish_id=fish_id)

        db.session.add(note)
        db.session.commit()
        return note, 201


@note_ns.route('/notes/<int:id>')
@note_ns.response(404, 'note not found')
class NoteResource(Resource):
    @note_ns.marshal_with(note_model)
    def get(self, id):
        return Note.query.get_or_404(id)

    # patch: edit the note, bumps the modified time
    @note_ns.expect(note_model, validate=False)
    @note_ns.marshal_with(note_model)
    def patch(self, id):
        note = Note.query.get_or_404(id)
        data = note_ns.payload
        note.update(data.get('title', note.title),
                    data.get('content', note.content),
                    data.get('tags', note.tags))

        db.session.commit()
        return note

    def delete(self, id):
        note = Note.query.get_or_404(id)
        db.session.delete(note)
        db.session.commit()
        return '', 204


@note_ns.route('/notes/tags')
class NoteTags(Resource):
    # get: every tag in use, sorted
    def get(self):
        return all_tags(Note.query.all())
