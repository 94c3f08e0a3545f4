"""DishDash Restaurant backend (Flask + MongoDB)."""

from .flask_server import create_app

__all__ = ['create_app']
