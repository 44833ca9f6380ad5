"""Settings used by the test suite."""

from .settings import *  # noqa: F401,F403

DEBUG = False
SECRET_KEY = "rideshare-test-secret-key"

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CHANNEL_LAYERS = {
    "default": {
        "BACKEND": "channels.layers.InMemoryChannelLayer",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

LOGGING["root"]["level"] = "CRITICAL"  # noqa: F405
for _name in ("services", "rides", "realtime"):
    LOGGING["loggers"][_name]["level"] = "CRITICAL"  # noqa: F405
