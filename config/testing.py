import os
import tempfile

SECRET_KEY = "test-secret"
JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_DAYS = 7

MONGO_CONFIG = {
    "uri": os.getenv("MONGO_URI", "mongodb://localhost:27017"),
    "database": os.getenv("MONGO_DB", "smart_campus_test"),
}

UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(tempfile.gettempdir(), "campus_portal_uploads"))
MAX_CONTENT_LENGTH = 1024 * 1024
ALLOWED_NOTE_EXTENSIONS = {"pdf", "txt", "png"}
PUBLIC_BASE_URL = None

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
