import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT_DIR / "data"

load_dotenv(ROOT_DIR / ".env")

MEDIA_DIR = os.getenv("WAVCUT_MEDIA_DIR", str(DATA_DIR / "media"))
OUTPUT_DIR = os.getenv("WAVCUT_OUTPUT_DIR", str(DATA_DIR / "chunks"))

MEMORY_LIMIT_MB = int(os.getenv("WAVCUT_MEMORY_LIMIT_MB", "512"))
DEFAULT_DESTINATION = os.getenv("WAVCUT_DEFAULT_DESTINATION", "return_bytes")

API_HOST = os.getenv("WAVCUT_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("WAVCUT_API_PORT", "8000"))
