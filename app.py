#!/usr/bin/env python3
"""
Deployment entry point - runs the Headline Forge API server.

The FastAPI `app` is exposed at module level for uvicorn to import:
    uvicorn app:app --host 0.0.0.0 --port 8000
"""
import os
import sys

# Add the headline_forge source to the path BEFORE any imports
_project_root = os.path.dirname(os.path.abspath(__file__))
_src_path = os.path.join(_project_root, "headline_forge", "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

from headline_forge.server import app  # noqa: E402

__all__ = ["app"]

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))

    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=port)
