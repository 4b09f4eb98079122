"""
Indexer service for provisioning the ads collection.

This module handles the flow:
1. Drop and recreate the collection with the derived embedding field
2. Load the bulk source and normalize document ids
3. Import documents in batches with bounded retries
4. Verify the document count
5. Seed synonym rules
"""
