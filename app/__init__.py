from app import models
import logging
import os
from flask import Flask

from app import extensions
from app.config import config_by_name
from app.extensions import db, api
from app.routes.fish import fish_ns
from app.routes.tank_log import logs_ns
from app.routes.maintenance import maintenance_ns
from app.routes.plant import plant_ns
from app.routes.treatment import treatment_ns
from app.routes.photo import photo_ns
from app.routes.note import note_ns
from app.routes.notification import notification_ns
from app.services.image_service import ImageService
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def create_app(config_name='dev'):
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])

    if not os.path.exists(app.config['UPLOAD_FOLDER']):
        os.makedirs(app.config['UPLOAD_FOLDER'])
    db.init_app(app)
    api.init_app(app)

    extensions.image_service = ImageService()
    extensions.image_service.init_app(app)

    extensions.notification_service = NotificationService()
    extensions.notification_service.init_app(app)

    api.add_namespace(fish_ns, path='/')
    api.add_namespace(logs_ns, path='/')
    api.add_namespace(maintenance_ns, path='/')
    api.add_namespace(plant_ns, path='/')
    api.add_namespace(treatment_ns, path='/')
    api.add_namespace(photo_ns, path='/')
    api.add_namespace(note_ns, path='/')
    api.add_namespace(notification_ns, path='/')

    logger.info("App created with '%s' config", config_name)
    return app
