"""
Latch core: data model, hashing, configuration, clock and errors.
"""
