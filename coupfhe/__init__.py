"""
CoupFHE - Rule engine for Coup with sealed roles

The authoritative game logic for Coup. The engine provides:
- Per-player coins and sealed/revealed role custody
- Validation of the seven turn actions
- Challenge and block resolution through ownership proofs
- Turn order, eliminations and end of game
- Persistence of typed records through a key-value ledger
"""

__version__ = "0.1.0"
