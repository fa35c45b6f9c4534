"""
Version 1 of the marketplace API.
"""
