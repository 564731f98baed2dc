"""HTTP API for the Blog Image Generator.

- **main.py**: FastAPI application, routes and the ``blog-image-server`` entry point
- **models.py**: Pydantic request models
"""
