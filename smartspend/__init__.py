"""
SmartSpend - Source Package

A personal finance tracker built around three fixed accounts
(salary, savings, cash), with Bazar tracking, a lending tracker
and AI-generated advice.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. The ledger core is pure and never raises on bad data
3. Defaulting happens once, at the storage boundary
4. Boundary failures become notices, not crashes
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SmartSpend Team"
