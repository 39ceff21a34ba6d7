"""
KBV fetch-questions service.
Retrieves knowledge-based verification questions for a session and decides
whether there are enough of them to run an interview.
"""

__version__ = "1.0.0"
