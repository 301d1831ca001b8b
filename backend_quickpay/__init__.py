"""
Backend QuickPay: conversational Web3 payments backend.

Turns natural-language chat commands into confirmed payments, keeps the
transaction and reward ledger, and derives credibility scores and badges
from payment history. Modular layout: assistant (parser + dialogue),
analysis engine, rewards, payments boundary, database and API server.
"""

__version__ = "0.1.0"
