"""Flask extensions shared by every app instance (bound in ``create_app``)."""

from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .core.constants import READ_RATE_LIMIT

jwt = JWTManager()
cors = CORS()
# Storage comes from RATELIMIT_STORAGE_URI; routes that write add their own tighter limit.
limiter = Limiter(key_func=get_remote_address, default_limits=[READ_RATE_LIMIT])
