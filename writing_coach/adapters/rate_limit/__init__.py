"""Rate limiting adapters.

Admission control is written against ``AbstractRateLimiter`` so the
in-memory sliding window can later be replaced by a shared store (e.g.
Redis) without touching the pipeline.
"""
