"""Vocabulary lookup API: cached, LLM-backed dictionary entries."""
