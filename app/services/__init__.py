"""
Services layer - report verification business logic.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- One component per module: content checks, weather cross-validation,
  duplicate detection, reporter trust, verification engine, rate limiter
- Collaborators (report store, weather provider, broadcaster) are injected
"""
