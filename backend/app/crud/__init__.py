"""
CRUD operations for the application.
"""
from app.crud import company
from app.crud import introduction
from app.crud import notification
from app.crud import professional

__all__ = ["company", "introduction", "notification", "professional"]
