"""
vcscan - report pending changes across many nested working copies.
"""

__version__ = "0.1.0"
