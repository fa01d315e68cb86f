"""
Application Layer

Orchestrates domain objects and infrastructure adapters.

Structure:
- interfaces/: Port interfaces for infrastructure adapters
- services/: Session controller, registry and progress ticker
"""
