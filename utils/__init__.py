"""
Input and logging utilities for the Banker's Admission Controller.
"""
