#!/usr/bin/env python
"""Script to run the Todo API server."""
import os
from pathlib import Path

import uvicorn

from todo_api.config import APP_PORT

# Change to the project directory so the default sqlite path lands here
os.chdir(Path(__file__).resolve().parent)

if __name__ == "__main__":
    uvicorn.run(
        "todo_api.main:app",
        host="0.0.0.0",
        port=APP_PORT,
        reload=True
    )
