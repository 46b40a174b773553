"""
PasteDrop - share a text blob behind an expiring link.
"""
