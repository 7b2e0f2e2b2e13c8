"""
StageVault Core Module

Core functionality for the staged treasury including:
- Checked arithmetic and the error taxonomy
- Token collaborators and the transactional execution environment
- The treasury components and the deployed vault
- Configuration, logging and metrics
"""

__all__ = []
