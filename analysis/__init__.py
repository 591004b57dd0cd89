"""
Event log and metrics for admission decisions.
"""
