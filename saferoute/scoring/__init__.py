"""
Deterministic safety scoring.

Components:
- weights: PenaltyTable, CategoryThresholds, clamp and categorize
- scorer: SafetyScorer
"""
