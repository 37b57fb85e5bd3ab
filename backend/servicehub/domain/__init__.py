"""
Pure booking, tier and commission rules.

Nothing in this package touches the database; services feed it plain values.
"""
