"""
slotsearch - find bookable time slots for multi-service requests.
"""

__version__ = "0.1.0"
