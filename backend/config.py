"""
Environment driven configuration.

Values are read from the process environment after loading an optional
``.env`` file, and end up in ``app.config``.
"""

import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()

DEFAULT_ORIGINS = [
    'http://localhost:5173',
    'http://localhost:5174',
    'https://dish-dash-restaurant.vercel.app',
    'https://dishdash-restaurant.web.app',
]


def build_mongo_uri():
    """Use MONGO_URI when given, otherwise build the Atlas URI from DB_USER/DB_PASS"""
    uri = os.getenv('MONGO_URI')
    if uri:
        return uri

    user = os.getenv('DB_USER')
    password = os.getenv('DB_PASS')
    if user and password:
        return (
            f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}"
            '@cluster0.xmhoqrm.mongodb.net/?retryWrites=true&w=majority&appName=Cluster0'
        )
    return 'mongodb://localhost:27017'


def parse_origins(value):
    if not value:
        return list(DEFAULT_ORIGINS)
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def env_flag(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes')


def load_config():
    """Collect all settings the app needs into a plain dict"""
    return {
        'MONGO_URI': build_mongo_uri(),
        'DB_NAME': os.getenv('DB_NAME', 'DishDash-Restaurant'),
        'ACCESS_TOKEN_SECRET': os.getenv('ACCESS_TOKEN_SECRET', 'your-secret-key'),
        'TOKEN_EXPIRES_DAYS': int(os.getenv('TOKEN_EXPIRES_DAYS', 7)),
        'STRIPE_SECRET_KEY': os.getenv('STRIPE_SECRET_KEY'),
        # Flask-Mail settings; 465 + SSL for Gmail, 587 + TLS for STARTTLS servers
        'MAIL_SERVER': os.getenv('MAIL_SERVER', 'smtp.gmail.com'),
        'MAIL_PORT': int(os.getenv('MAIL_PORT', 465)),
        'MAIL_USE_SSL': env_flag('MAIL_USE_SSL', True),
        'MAIL_USE_TLS': env_flag('MAIL_USE_TLS', False),
        'MAIL_USERNAME': os.getenv('EMAIL_USER'),
        'MAIL_PASSWORD': os.getenv('EMAIL_PASS'),
        'MAIL_DEFAULT_SENDER': ('DishDash', os.getenv('EMAIL_USER')) if os.getenv('EMAIL_USER') else None,
        'CORS_ORIGINS': parse_origins(os.getenv('CORS_ORIGINS')),
        'PORT': int(os.getenv('PORT', 5000)),
        'DEBUG': env_flag('DEBUG', False),
    }
