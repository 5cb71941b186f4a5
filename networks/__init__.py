"""
Network Configuration Package
Network profiles, the registry and its config/env loader
"""

from .profile import NetworkProfile
from .registry import NetworkRegistry
from .loader import load_registry

__all__ = ['NetworkProfile', 'NetworkRegistry', 'load_registry']
