"""
App assembly entry point.

Re-exports the FastAPI `app` from `final10.api.main` so `uvicorn app:app`
keeps working from the repository root.
"""

from final10.api.main import app  # noqa: F401
