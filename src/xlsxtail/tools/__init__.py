"""Developer tools: a synthetic batch publisher for manual end-to-end runs."""
