# scrapers/__init__.py
"""
URL classification, per-site extraction, redirect resolution and normalization.
"""
