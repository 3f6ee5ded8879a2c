"""
Intent Engine

Captures behavioral signals about prospective customers, scores buying
intent with time decay, and hands high-intent identities to sales workflows.
"""
__version__ = "1.0.0"
