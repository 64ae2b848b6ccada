"""Services: LLM access, text generation and export rendering."""
