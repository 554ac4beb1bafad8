"""
Infrastructure Layer

Concrete adapters:
- lavalink/: node websocket, REST client, players and the manager
- discord/: discord.py gateway adapter and client
"""
