"""
Catalog feature module.

The fixed vocabulary of the permission system: operations, objects,
permissions and profiles, plus which permissions each profile may grant.
"""
