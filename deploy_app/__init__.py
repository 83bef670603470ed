"""
Deploy App - Contract Deployment Module Runner

Resolves deployment parameters, builds dependency-ordered execution plans
for contract-creation and method-call steps, and executes them against a
ledger transport.
"""

__version__ = "0.1.0"
__author__ = "Deploy App Team"
