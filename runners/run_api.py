from pathlib import Path
import sys

import uvicorn

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend import config


if __name__ == "__main__":
    uvicorn.run("backend.main:app", host=config.API_HOST, port=config.API_PORT, reload=True)
