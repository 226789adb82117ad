"""
Core infrastructure: exceptions, logging and retry helpers.
"""
