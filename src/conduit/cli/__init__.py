"""
Conduit command line interface.
"""
