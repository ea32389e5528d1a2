"""
Application Layer Package

Stateful coordinators of the prediction core (registry, cache, optimizer,
orchestrator) and the DTOs exchanged with the presentation layer.
"""

from predictcore.application import dtos, models, services, use_cases

__all__ = ["dtos", "models", "services", "use_cases"]
