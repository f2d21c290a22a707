"""
Domain Layer - Entities, DTOs, services and rules of the estimation model.
"""
