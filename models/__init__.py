"""
Data models for the Banker's Admission Controller.
Contains the resource ledger and the request model.
"""
