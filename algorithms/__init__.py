"""
Algorithms package for the Banker's Admission Controller.
Contains the safety algorithm and the request admission protocol.
"""
