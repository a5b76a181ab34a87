"""Domain services.

Import services from their modules; this package keeps no re-exports so
the service graph can be assembled without import cycles.
"""
