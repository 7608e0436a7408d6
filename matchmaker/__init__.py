"""
Profile composition and matching workflow for the matchmaking app.
"""

__version__ = "0.1.0"
