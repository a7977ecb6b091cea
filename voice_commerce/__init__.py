"""
Voice Commerce Engine
=====================
A multilingual voice assistant that lets artisans run their shop by speaking.

Features:
- Guided product creation over several turns
- Product, pricing, order and sales lookups
- Session-scoped conversation context
- 15 Indian locales

Tech Stack:
- FastAPI (async backend)
- AI4Bharat IndicConformer (STT)
- edge-tts (TTS)
- Groq API (NLU)
"""

__version__ = "1.0.0"
