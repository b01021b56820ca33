# license_server/schemas/__init__.py
"""
Schema module initialization.
Exports all schema classes from submodules for convenient imports.
"""
from .auth import *
from .subscription import *
from .license_key import *
from .admin import *
