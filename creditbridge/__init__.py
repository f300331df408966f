"""
CreditBridge — A Discord ↔ Telegram Relay with Community Reputation
====================================================================
Forwards messages and media between one Discord channel and one Telegram
chat, and keeps a reputation ledger fed by voice-channel presence and
admin-granted point adjustments.

Package layout::

    creditbridge/
    ├── config.py          # YAML → typed Python config, admin allow-list
    ├── constants.py       # Shared constants (markup set, captions, defaults)
    ├── storage/
    │   ├── models.py      # UserRecord dataclass
    │   └── store.py       # JSON file store + async I/O helper
    ├── engine/
    │   ├── ledger.py      # Thread-safe reputation ledger
    │   ├── commands.py    # Chat command parser (closed command set)
    │   ├── events.py      # RelayMessage / Attachment envelopes
    │   └── markup.py      # MarkdownV2 escaping, mention handling
    ├── services/
    │   ├── relay_service.py  # Relay pipeline + command dispatch
    │   ├── voice_service.py  # Voice presence supervisor
    │   ├── media_service.py  # Temp-file download / cleanup
    │   └── messages.py       # User-facing reply texts
    ├── channels/
    │   └── telegram.py    # python-telegram-bot adapter (polling)
    └── bot/
        ├── core.py        # Bot subclass, cog loader, Discord outbound
        ├── __main__.py    # Entry point, signal handling, shutdown save
        └── cogs/
            ├── relay.py   # on_message → relay pipeline
            ├── voice.py   # on_voice_state_update → supervisor
            └── tasks.py   # Periodic ledger save
"""

__version__ = "0.1.0"
