"""
Cross-cutting platform helpers.
"""
