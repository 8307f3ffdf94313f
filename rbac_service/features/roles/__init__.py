"""
Role and permission management feature module.

Stores roles, the permission catalog and role-permission associations, and
reconciles a role's permission set against a desired set.
"""
