"""
Caller identity for API routes.
"""
