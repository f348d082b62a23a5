"""tcp-enabler: turn on TCP network tests support for an installed agent.

Core design goals:
- Never downgrade an existing installation
- Preserve browser integration features unless told otherwise
- Deterministic ADDLOCAL/REMOVE feature sets
- Centralized logging, installer log always reported
"""

__all__ = []
