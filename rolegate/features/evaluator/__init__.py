"""
Permission evaluator feature module.

Request-time decisions: which profile is active, and whether a user may
perform an operation on an object, optionally within one organization.
"""
