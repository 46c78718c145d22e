"""
Core primitives, entity metadata and contracts.

This module contains the foundational building blocks of change detection
that are independent of any storage platform (SQL drivers, transactions, etc.).
"""
