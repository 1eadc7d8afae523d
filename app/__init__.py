"""
Funmi Gateway: Multi-Provider AI Gateway

Routes chat, image generation and search requests to third-party AI
providers through statically ordered primary/fallback chains, degrading to
a canned response when every provider in a chain fails.
"""

__version__ = "0.1.0"
