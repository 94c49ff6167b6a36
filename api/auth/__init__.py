"""
Credential hashing, access tokens and the login use case.
"""
