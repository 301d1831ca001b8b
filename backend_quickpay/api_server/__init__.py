"""
API server package: HTTP/JSON interface.

Exposes transaction history, reward claims, user profiles and the chat
assistant. Delegates to the database, rewards, analysis and assistant layers.
"""
