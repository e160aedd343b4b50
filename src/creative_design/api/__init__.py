"""FastAPI layer for the Creative Design service.

The application is built by :func:`creative_design.api.main.create_app`;
request and response bodies live in :mod:`creative_design.api.models`.
"""
