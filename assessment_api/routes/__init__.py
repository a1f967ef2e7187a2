"""API route modules."""
from assessment_api.routes import assessments, attempts

__all__ = ["assessments", "attempts"]
