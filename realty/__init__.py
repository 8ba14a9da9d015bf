"""
Realty Marketplace API.

A listing marketplace where agents publish property listings, admins moderate
them and clients browse what is published.
"""

__version__ = "1.0.0"
