"""
Shared exceptions, constants and type aliases.
"""
