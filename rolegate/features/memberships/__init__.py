"""
Membership feature module.

Users, their role memberships and their single active profile.
"""
