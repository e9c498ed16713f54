"""
Mandi SaaS - multi-tenant mandi management backend
"""

__version__ = "1.0.0"
