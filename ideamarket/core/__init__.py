"""
Core domain models, mathematical primitives, errors and ambient configuration.

This module contains the foundational building blocks that are independent
of the registry, reserve and exchange components.
"""
