"""Query-time pipeline: providers, cache, prompt, parser, engine."""
