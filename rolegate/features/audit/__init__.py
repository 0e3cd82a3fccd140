"""
Audit log feature module.

Records who changed roles, memberships and active profiles.
"""
