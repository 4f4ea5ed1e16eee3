"""Request-log store adapters.

The limiter depends on ``AbstractSortedSetStore`` only, so Redis (shared across
processes) and the in-memory double (tests, single process) are interchangeable.
"""
