"""Discord archive pipeline.

This package walks Discord channels, guilds and member lists and writes them
into the archive database, downloading referenced media alongside.

Usage:
    python -m discord_archiver.ingest                  # Archive everything in config
    python -m discord_archiver.ingest --guild-id X     # Archive one guild
    python -m discord_archiver.ingest --channel-id X   # Archive one channel
"""
