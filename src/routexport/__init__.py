"""
routexport: dynamic export schema and field resolution for planned routes.
"""

__version__ = "0.1.0"
