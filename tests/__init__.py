"""
Book Catalog Test Suite

Tests are organized into:
- unit/: Filters, controller, sessions, repository, assistant
- integration/: HTTP API over an in-memory backend
"""
