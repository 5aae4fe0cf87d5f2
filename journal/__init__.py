"""AI Journal backend: note storage with asynchronous AI enrichment."""
