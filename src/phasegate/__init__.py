"""
phasegate - phase-lifecycle governance for externally stored automation artifacts.

Gates in-place mutation and deletion of n8n workflows and voice agents by
lifecycle phase, and flags near-duplicate artifacts before they are created.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
