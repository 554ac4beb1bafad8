"""discord.py integration."""
