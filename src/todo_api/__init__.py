"""
Per-user todo list API.

The request handlers live in ``todo_api.handlers``; ``todo_api.main`` exposes
them as a FastAPI app and ``todo_api.lambda_handlers`` as AWS Lambda entry
points.
"""

__version__ = "0.1.0"
