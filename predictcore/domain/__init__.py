"""
Domain Layer Package

Entities, domain services and ports of the prediction core. Nothing in this
layer depends on frameworks or infrastructure.
"""
