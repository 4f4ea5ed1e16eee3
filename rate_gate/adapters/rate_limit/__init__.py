"""Rate limiting adapters.

``SlidingWindowRateLimiter`` keeps a per-identifier request log in any
``AbstractSortedSetStore``; the dispatcher only sees ``AbstractRateLimiter``.
"""
