"""VoicePrompt - speak a prompt, get a markdown answer."""

__version__ = "0.1.0"
