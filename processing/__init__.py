"""Relevance matching, prompt assembly and duplicate grouping."""
