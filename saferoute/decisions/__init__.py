"""
SafeRoute Decision Support.

Components:
- comparator: recommended-route selection, justification, comparison table
"""
