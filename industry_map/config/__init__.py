"""
Configuration for the industry map service.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
