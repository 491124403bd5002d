"""rolegate - an in-memory RBAC2 authorization core.

Role hierarchies, permission catalogs, constraints and sessions with
selectively activated roles.
"""

__version__ = "0.1.0"
