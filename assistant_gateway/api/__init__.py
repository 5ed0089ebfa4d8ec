"""
API Package - routes, dependencies, auth and middleware.
"""
