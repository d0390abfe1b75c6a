"""Crawl-orchestration engine: scope, normalization, dedup, fetch and dispatch."""
