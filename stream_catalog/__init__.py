"""Stream Catalog - Backend.

A small JSON API over a document store:
- Stream records (title, description, thumbnail, streamUrl, isLive, tags,
  category, createdAt) are public to read.
- Writes require a bearer token issued by /api/login to an admin user.

See DESIGN.md for the layout.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
