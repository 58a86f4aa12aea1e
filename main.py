"""
Trip Notification Backend
=========================
Entry point. Run with: uvicorn main:app --reload
"""

import os

import uvicorn

from tripnotify.api.app import create_app

app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
