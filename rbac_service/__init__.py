"""
Role and permission store service.

Stores roles, permissions and their associations behind one storage contract
with a relational (SQL) and an embedded (ORM) backend.
"""
__version__ = "0.1.0"
