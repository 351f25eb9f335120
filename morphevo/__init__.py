"""
morphevo - evolution of robot controllers and sensor morphologies.
"""

__version__ = "0.1.0"
