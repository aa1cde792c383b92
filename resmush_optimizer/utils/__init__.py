"""
Shared helpers: validation, file handling and error types.
"""
