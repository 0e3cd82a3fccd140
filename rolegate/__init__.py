"""
rolegate: activity-based permission decisions.

Profiles, organization-scoped roles and additive permissions, with an
in-memory decision core and a FastAPI surface around it.
"""
