"""
Role feature module: role entity, role hierarchy and effective permissions.
"""
