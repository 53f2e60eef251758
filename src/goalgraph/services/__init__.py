"""Service layer — resolution, upsert, linking, insertion and visibility.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
