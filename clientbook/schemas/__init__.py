# clientbook/schemas/__init__.py
"""Pydantic schemas package"""
from .user import UserRead, UserCreate, UserUpdate

__all__ = ["UserRead", "UserCreate", "UserUpdate"]
