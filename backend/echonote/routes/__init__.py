"""
EchoNote Backend: API Routes Package
=====================================

Route Inventory (resource routers are mounted under `settings.api_prefix`):
    - notes.py:   POST   /api/notes              (create)
                  GET    /api/notes              (list, newest first)
                  GET    /api/notes/{id}         (detail)
                  PATCH  /api/notes/{id}         (partial update)
                  DELETE /api/notes/{id}         (delete)
    - audio.py:   POST   /api/notes/{id}/audio   (upload recording)
                  POST   /api/notes/{id}/process (transcribe + summarize)
    - chat.py:    POST   /api/chat/query         (ask about notes)
    - health.py:  GET    /health                 (service health check)

Routes stay thin: parse the request, call one service, shape the response.
Errors propagate to the global exception handlers in main.py.
"""
