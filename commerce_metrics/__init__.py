"""
Commerce Metrics

In-memory analytics over a small e-commerce dataset: lifetime spend
ranking, daily revenue with running totals and payment-date islands.
"""

__version__ = "1.0.0"
