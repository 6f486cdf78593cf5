"""
fuzzyrepo - fuzzy repository launcher

A terminal launcher for fuzzy-searching your GitHub and locally cloned
repositories, then opening, copying, or browsing the one you pick.

Created: 2025-11-20
"""

__version__ = "0.1.0"
__author__ = "fuzzyrepo contributors"
