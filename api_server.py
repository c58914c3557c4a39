"""Local entry point: serve the studio API with uvicorn."""

import os
import uvicorn

from backdrop.controller.main_controller import app

__all__ = ["app"]


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )
