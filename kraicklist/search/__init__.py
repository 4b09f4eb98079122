"""
Search API service for hybrid keyword + vector search.

This module provides:
1. Hybrid request construction (keyword fields plus the derived embedding)
2. Query execution through the multi-search endpoint
"""
