"""Application layer: caches, lookup services and the enrichment controller."""
