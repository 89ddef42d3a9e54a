#!/usr/bin/env python3
"""
docgenius

A FastAPI application that turns PDF documents into styled HTML reports,
compiles reports into self-contained slide decks and applies conversational
edits to generated reports.

To start the server:
    python main.py
"""

import sys
from pathlib import Path

# add the repo root to python path so src.docgenius imports resolve
sys.path.insert(0, str(Path(__file__).parent))

# start the fastapi server when this file is run
if __name__ == "__main__":
    import uvicorn
    # run the api app on port 8000 with auto-reload for development
    uvicorn.run("src.docgenius.api:app", host="0.0.0.0", port=8000, reload=True)
