"""
nsync Utilities

File operation primitives and logging setup.

Author: nsync Project
License: MIT
"""
