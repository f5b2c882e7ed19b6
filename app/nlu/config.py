import os
from dotenv import load_dotenv

# Load .env as soon as this module is imported (safe to call multiple times)
load_dotenv()

# IANA zone used for the reference "now" and for reminder wall-clock times; empty = server local
TASKS_TIMEZONE: str = os.getenv("TASKS_TIMEZONE", "")
TASKS_LANGUAGES: list[str] = [
    lang.strip() for lang in os.getenv("TASKS_LANGUAGES", "en").split(",") if lang.strip()
]
MAX_TRANSCRIPT_CHARS: int = int(os.getenv("MAX_TRANSCRIPT_CHARS", "5000"))
TASKS_LOG_LEVEL: str = os.getenv("TASKS_LOG_LEVEL", "INFO").upper()
