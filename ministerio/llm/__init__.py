"""Gemini adapters (text generation, chat transcript, live voice)."""

from ministerio.llm.chat import ChatMessage, ChatTranscript
from ministerio.llm.gemini_live import VoiceSession, VoiceState
from ministerio.llm.gemini_text import GeminiTextClient, GenerationResult, GroundingSource, LatLng

__all__ = [
    "ChatMessage",
    "ChatTranscript",
    "GeminiTextClient",
    "GenerationResult",
    "GroundingSource",
    "LatLng",
    "VoiceSession",
    "VoiceState",
]
