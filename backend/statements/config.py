import os

# Pipeline Configuration
class Config:
    PARSER_SERVICE_URL = os.environ.get("PARSER_SERVICE_URL", "http://127.0.0.1:8000/parse")
    PARSER_API_KEY = os.environ.get("PARSER_API_KEY")
    PARSER_TIMEOUT = float(os.environ.get("PARSER_TIMEOUT", "120"))
    CHUNK_SIZE = int(os.environ.get("CHUNK_SIZE", "8192"))
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "temp_uploads"))
    MAX_FILE_SIZE = int(os.environ.get("MAX_FILE_SIZE", 10 * 1024 * 1024))
    ALLOWED_EXTENSIONS = {'pdf'}
    # Absolute, not relative; absorbs float noise only
    RECONCILIATION_TOLERANCE = float(os.environ.get("RECONCILIATION_TOLERANCE", "0.1"))
    ALLOWED_ORIGINS = [o.strip() for o in os.environ.get("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]
