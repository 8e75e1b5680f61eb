import os

from dotenv import load_dotenv

load_dotenv()

DB_PATH = os.getenv("GRINDER_DB_PATH", "./grinder.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
