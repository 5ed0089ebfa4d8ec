"""
Study Assistant Gateway.

Generative-AI chat gateway for the assignment management application:
proxies student questions to the generative provider with retry/backoff,
a circuit breaker, per-user rate limiting and a rule-based fallback responder.
"""

__version__ = "1.0.0"
