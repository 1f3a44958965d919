"""
Headline Forge: headline synthesis and quality scoring for generated articles.
"""

__version__ = "1.0.0"
