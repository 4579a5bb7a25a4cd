"""
Plant treatment relay: asks Gemini for structured treatment and prevention
guidance for a named plant disease.
"""

__version__ = "0.1.0"
