"""Redis-backed caching: store, TTL policy, key builders and domain caches."""
