"""
Test suite for ideamarket

Contains:
- tests/unit/          : Unit tests for individual modules and the assembled
                         Registry + InterestManager + Exchange system
"""
