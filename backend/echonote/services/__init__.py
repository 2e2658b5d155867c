# Services package init
"""
EchoNote Backend: Services Layer
=================================

Service Inventory:
    - NoteService:      note CRUD, type and ID validation
    - AudioStorage:     audio blob validation and filesystem storage
    - AudioService:     upload → store blob → create pending job
    - AudioPipeline:    job state machine (transcribe, summarize, update note)
    - ChatService:      keyword search over notes, templated answers
    - GeminiClient:     shared Gemini SDK wrapper (retry + circuit breaker)
    - providers.py:     TranscriptionProvider / SummaryProvider interfaces,
                        implemented by transcription_service and summary_service
"""
