import logging
import os

from app import create_app, extensions
from app.config import config_by_name
from app.extensions import db
from app.logging_setup import setup_logging
from app.seed import seed_sample_data

config_name = os.getenv('VOLT_CONFIG', 'dev')
setup_logging(config_by_name[config_name].LOG_DIR)
logger = logging.getLogger(__name__)

app = create_app(config_name)

if __name__ == '__main__':
    with app.app_context():
        db.create_all()
        if app.config['SEED_SAMPLE_DATA']:
            seed_sample_data()
        if app.config['NOTIFICATIONS_ENABLED']:
            extensions.notification_service.setup_notifications_from_database()

    if app.config['NOTIFICATIONS_ENABLED']:
        extensions.notification_service.start()

    logger.info("Starting Volt on http://127.0.0.1:5000/docs")
    # the reloader would start a second timer
    app.run(debug=app.config.get('DEBUG', False), use_reloader=False)
