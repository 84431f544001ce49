"""
Project errors that the router maps to client status codes.
"""

from __future__ import annotations


# Missing or malformed input (400).
class ValidationError(Exception):
    pass


# Project id does not resolve to a row (404).
class NotFoundError(Exception):
    pass
