"""Business logic services.

Services own entry mapping, orchestration and text transforms; routes stay thin.
"""
