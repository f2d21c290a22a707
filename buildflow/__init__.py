"""
BuildFlow - construction estimation back end.
"""
__version__ = "1.0.0"
