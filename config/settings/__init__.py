"""
Django settings package for the NetTech Shop backend.
"""
from .base import *  # noqa: F401,F403
