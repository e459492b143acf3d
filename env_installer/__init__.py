"""env-installer: provision a machine from scoped, idempotent step scripts.

Core design goals:
- Steps are plain executables, one process per step
- More specific scopes override generic steps by logical name
- Deterministic run order from numeric filename prefixes
- Fail fast: the first failing step ends the run
- One append-only log file per run
"""

__all__ = []
