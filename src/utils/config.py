# runtime settings, read once from the environment
import os

API_URL = os.getenv("SHOPFRONT_API_URL", "http://localhost:4000").rstrip("/")
DB_PATH = os.getenv("SHOPFRONT_DB_PATH", "data/shopfront.sqlite")
HTTP_TIMEOUT = float(os.getenv("SHOPFRONT_HTTP_TIMEOUT", "15"))
LOG_FILE = os.getenv("SHOPFRONT_LOG_FILE")
DEBUG = bool(os.getenv("DEBUG"))
