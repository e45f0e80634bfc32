"""
Entry point for serving the scoring API with `python -m backend`.
"""
import os

import uvicorn

from backend.settings import get_settings

if __name__ == "__main__":
    uvicorn.run(
        "backend.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8001")),
        reload=get_settings().is_development,
    )
