"""
Capacity plan validation and lifecycle (Draft -> Active -> Archived).

Services return new plan / constraint records; the storage layer persists them.
"""
