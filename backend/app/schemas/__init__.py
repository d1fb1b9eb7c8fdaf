"""
Pydantic schemas for the application.
"""
