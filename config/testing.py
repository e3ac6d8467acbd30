from .base import *  # noqa: F401,F403

SECRET_KEY = "test-secret"
JWT_SECRET_KEY = "test-jwt-secret-with-at-least-32-bytes"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

JWT_COOKIE_SECURE = False
RATELIMIT_ENABLED = False
RATELIMIT_STORAGE_URI = "memory://"

AUTO_INIT_DB = False
AUTO_SEED_DB = False
