"""
Transcription module - Whisper speech-to-text and Claude structuring.
"""

from dictation.transcription.router import router as transcription_router

__all__ = ["transcription_router"]
