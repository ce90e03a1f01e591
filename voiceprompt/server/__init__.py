"""HTTP server exposing the transcription and chat proxies."""

from .app import create_app, run_server

__all__ = ["create_app", "run_server"]
