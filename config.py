import logging
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

APP_NAME = os.getenv("APP_NAME", "9 Tierras Backend")

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "9tierras")

SESSION_SECRET = os.getenv("SESSION_SECRET", "9tierras_secret_123")
PUBLIC_DIR = os.getenv("PUBLIC_DIR", os.path.join(BASE_DIR, "public"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# seed account for the admin panel
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@9tierras.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "1234")
