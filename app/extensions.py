from flask_sqlalchemy import SQLAlchemy
from flask_restx import Api

db = SQLAlchemy()

api = Api(version='1.0',
          title='Volt Betta Manager API',
          description='API for tracking Volt the betta: tank logs, maintenance, plants, treatments, photos and notes',
          doc='/docs')

# services, set up in create_app
notification_service = None
image_service = None
