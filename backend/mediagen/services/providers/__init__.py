"""Gemini API provider clients.

Video follows the long-running operation pattern:
  POST predictLongRunning -> poll operation -> download result
Images are synchronous predict / generateContent calls.
"""
