"""
Agora Governance Package

Core imports are lazily loaded so that importing the package does not
configure logging or read `.env` until something is actually used.
For direct module access, import from submodules:

    from agora.governance import GovernanceEngine, VoteChoice
    from agora.config import load_config
    from agora.exceptions import AgoraException
"""

# Lazy imports to avoid configuring logging at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'GovernanceEngine':
        from .governance import GovernanceEngine
        return GovernanceEngine
    elif name == 'load_config':
        from .config import load_config
        return load_config
    elif name == 'AgoraException':
        from .exceptions import AgoraException
        return AgoraException
    raise AttributeError(f"module 'agora' has no attribute {name!r}")

__all__ = ['GovernanceEngine', 'load_config', 'AgoraException']
