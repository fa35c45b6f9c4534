"""
Application package initializer.

Each marketplace domain (users, models, bookings, reviews, etc.) has a
service in ``services``, its payload schemas in ``schemas`` and a
router in ``api/v1/endpoints``.  Versioning is handled by grouping
routers under the ``api/<version>/`` hierarchy.
"""

from .main import app  # noqa: F401
