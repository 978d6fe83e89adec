"""
Serving — FastAPI application for the knowledge base.

Run locally with ``uvicorn --factory ragkb.serving.app:create_app``.
"""
