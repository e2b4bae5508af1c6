"""
FastAPI RESTful API for the Bookshelf catalog.

This module provides a REST API for:
- User registration and login with bearer tokens
- Author and book management
- Filtered, paginated search of the catalog
"""
