"""
Day Counter - Source Package

Per-user, per-day counter tracking backed by a remote document store.

DESIGN PRINCIPLES:
1. One document per (user, day); counters are fields on it
2. Every read-modify-write goes through a store transaction
3. The counter registry decides which counters exist
4. Store failures never crash the caller - state simply does not change
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Day Counter Team"
