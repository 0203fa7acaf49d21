"""
Tune Relay

A small backend that resolves radio stream URLs and identifies
uploaded audio clips through an external fingerprinting API,
rotating API keys when a key's quota runs out.
"""

__version__ = "1.0.0"
