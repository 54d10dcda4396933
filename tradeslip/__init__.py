"""
tradeslip: pricing and batching engine for prediction-market trade slips.
"""

__version__ = "0.1.0"
