"""
simport command-line interface.
"""
