"""AdPilot campaign builder backend.

Guided wizard, cascade rules, campaign registry with the hard cap safety
lock, and the AI generation collaborator, served over FastAPI.
"""

__all__: list[str] = []
