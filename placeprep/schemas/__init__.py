"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in placeprep.schemas.schemas; routes import from there.
"""
