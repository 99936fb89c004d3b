"""
Display helpers and templates for printable catalogue views.
"""
