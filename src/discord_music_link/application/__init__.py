"""
Application Layer

Ports the core depends on; implemented in the infrastructure layer.
"""
