"""
Instantly Chef - weekly meal planning, pantry/bar tracking and shopping cart.
"""

__version__ = "0.1.0"
