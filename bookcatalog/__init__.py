"""
Book catalog service.

Admins manage books and accounts; users browse a filtered catalog.
"""

__version__ = "1.0.0"
