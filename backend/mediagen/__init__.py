"""MediaGen Studio: image and video generation client for the Gemini API."""

__version__ = "0.1.0"
