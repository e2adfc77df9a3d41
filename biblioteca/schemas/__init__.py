# ruff: noqa: F403, F401
"""Schemas package initialization."""

from .base import *
from .auth import *
from .summary import *
from .library import *
