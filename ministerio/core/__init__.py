"""Project core.

Stable, non-domain building blocks: the error taxonomy and clock helpers.
"""
