"""
Subtitle producer agents.

- transcription_agent: renders the transcription prompt, calls the Gemini
  adapter (or its dry-run fallback) and validates the returned document.
"""

__version__ = "0.1.0"
