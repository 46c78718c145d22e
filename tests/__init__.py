"""
Test suite for change detection core

Contains:
- tests/unit/          : Unit tests for individual modules
"""
