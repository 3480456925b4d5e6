import pytest

from app import create_app, extensions
from app.extensions import db


@pytest.fixture
def app(tmp_path):
    app = create_app('test')
    app.config['UPLOAD_FOLDER'] = str(tmp_path)
    extensions.image_service.storage_dir = str(tmp_path)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fish(app):
    from app.models import FishProfile

    volt = FishProfile(name="Volt", species="Betta splendens", variant="Veiltail", color="Red/Blue")
    db.session.add(volt)
    db.session.commit()
    return volt
