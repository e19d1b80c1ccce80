"""
Agent W - Source Package

The AI extraction layer of a personal finance assistant. It turns
receipts, scanned documents and free-form narratives into structured
income, expense, budget and savings actions.

DESIGN PRINCIPLES:
1. The model is the parser, the code is the contract
2. Every model answer is validated before it leaves the package
3. Candidates are tried in a fixed order, never raced
4. Empty input is not an error, failed extraction is
5. Providers are swappable
"""

__version__ = "1.0.0"
__author__ = "Agent W Team"
