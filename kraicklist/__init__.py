"""
KraickList: hybrid keyword + vector search over classified ads.
"""

__version__ = "1.0.0"
