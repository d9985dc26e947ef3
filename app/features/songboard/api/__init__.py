"""
HTTP layer for the song board feature.
"""
