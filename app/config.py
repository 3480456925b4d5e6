import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


class Config:
    """Common settings shared by every environment."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'volt-secret-key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv('VOLT_DATABASE_URI', 'sqlite:///' + os.path.join(BASE_DIR, 'volt.db'))

    # photos are copied here, referenced by path from the photo table
    UPLOAD_FOLDER = os.getenv('VOLT_UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads'))
    LOG_DIR = os.getenv('VOLT_LOG_DIR', os.path.join(BASE_DIR, 'logs'))

    NOTIFICATIONS_ENABLED = True
    NOTIFICATION_INTERVAL_MINUTES = int(os.getenv('VOLT_NOTIFICATION_INTERVAL_MINUTES', '15'))

    SEED_SAMPLE_DATA = True


class DevelopmentConfig(Config):
    DEBUG = True


class TestingConfig(Config):
    """In-memory store, no background timer, no sample data."""
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    NOTIFICATIONS_ENABLED = False
    SEED_SAMPLE_DATA = False


config_by_name = dict(
    dev=DevelopmentConfig,
    development=DevelopmentConfig,
    test=TestingConfig,
    testing=TestingConfig
)
