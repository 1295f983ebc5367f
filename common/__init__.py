# common/__init__.py
"""
Shared infrastructure: fetching, platform detection, categories and helpers.
"""
