"""
FastAPI REST endpoint for the Analyst Debate Committee.

Exposes session creation, round execution, history and consensus over
HTTP. The debate core itself has no wire format; this is one binding.
"""
