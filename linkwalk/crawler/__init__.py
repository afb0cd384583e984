"""Link-graph crawling: extraction, classification, frontier, fetch and traversal policies."""
