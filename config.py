# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))


def _units_from_env(default):
    raw = os.environ.get('VALID_UNITS')
    if not raw:
        return default
    return tuple(u.strip().lower() for u in raw.split(',') if u.strip())


class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # The upload endpoint is called by other services, not by a browser form.
    WTF_CSRF_ENABLED = False

    # --- Database Configuration ---
    # SQLite in the 'instance' folder unless DATABASE_URL says otherwise.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/app.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Upload Configuration ---
    ALLOWED_EXTENSIONS = {'.xls', '.xlsx'}
    ALLOWED_MIME_TYPES = {
        'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        'application/vnd.ms-excel',
        'application/octet-stream',
    }

    # Requests above this size are rejected by Flask before reaching the pipeline
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # --- Business Units ---
    # Top-level partition key of every stored document.
    VALID_UNITS = _units_from_env(('alphaville', 'buenavista', 'marista', 'palmas'))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
