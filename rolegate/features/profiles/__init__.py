"""
Profile switching feature module.
"""
