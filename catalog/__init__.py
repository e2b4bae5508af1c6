"""
Catalog package for the Bookshelf API.

This package contains:
- ORM entities for authors, books and users
- Persistence gateway with per-operation transactions
- Search engine with concurrent page and count queries
- Credential and identity token services
- Use case orchestrators for every CRUD action
"""

__version__ = "1.0.0"
