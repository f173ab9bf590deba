"""Room/session engine for real-time party card games"""

__version__ = "1.0.0"
