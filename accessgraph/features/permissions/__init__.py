"""
Permission feature module.

Permission entity with mutually exclusive target/scope, the permission
dependency hierarchy and context-aware evaluation.
"""
