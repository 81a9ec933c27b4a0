# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8080")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", 10))

# json | redis | sql | memory
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "json")
STORAGE_DIR = os.getenv("STORAGE_DIR", os.path.join(os.path.expanduser("~"), ".storefront"))
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///storefront.db")

CART_STORAGE_KEY = os.getenv("CART_STORAGE_KEY", "grocery-cart-storage")
SESSION_STORAGE_KEY = os.getenv("SESSION_STORAGE_KEY", "auth-storage")

RETRY_WAIT_MULTIPLIER = float(os.getenv("RETRY_WAIT_MULTIPLIER", 0.3))
RETRY_WAIT_MAX = float(os.getenv("RETRY_WAIT_MAX", 3))

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 12))
