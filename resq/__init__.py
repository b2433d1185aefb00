"""
ResQ - AI-Powered Interview Practice Service

Upload a resume, pick an interview category, and practice answering
AI-generated questions with speech input, spoken model answers and
AI-scored feedback.
"""

__version__ = "0.1.0"
__author__ = "ResQ Team"
