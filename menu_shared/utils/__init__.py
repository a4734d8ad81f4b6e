"""
Utilities: exceptions, response envelope, validators.
"""
