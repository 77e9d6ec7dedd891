"""
Domain layer: entities and exceptions, free of framework dependencies.
"""
