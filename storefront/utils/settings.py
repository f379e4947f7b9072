# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")

# "rest" talks to the hosted API, "sql" to a local database through SQLAlchemy
DATA_BACKEND = os.getenv("DATA_BACKEND", "rest" if SUPABASE_URL else "sql")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
SEED_CATALOG = os.getenv("SEED_CATALOG", "1") == "1"

# without REDIS_URL cart mutations are serialized in-process only
REDIS_URL = os.getenv("REDIS_URL")
CART_LOCK_TTL_SECONDS = int(os.getenv("CART_LOCK_TTL_SECONDS", 30))
CART_LOCK_WAIT_SECONDS = float(os.getenv("CART_LOCK_WAIT_SECONDS", 10))

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 5))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
