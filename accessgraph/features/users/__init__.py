"""
User feature module: role assignment and direct grants/denials.
"""
