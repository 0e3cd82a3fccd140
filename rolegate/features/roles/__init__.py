"""
Role registry feature module.

Organization- and profile-scoped roles defined by tenant administrators at
runtime, each a bundle of catalog permissions valid for its profile.
"""
