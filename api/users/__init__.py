"""
User records: persistence, lifecycle use cases and HTTP routes.
"""
