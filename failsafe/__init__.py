"""
FailSafe — Turn Failures into Fuel
===================================
Pseudonymous members share setbacks, encourage each other, get paired
with accountability partners who hit the same walls, and earn points
and badges for trying again.

Package layout::

    failsafe/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Points, badges, word lists
    ├── errors.py          # Domain error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, async bridge, optimistic retry
    │   ├── models.py      # All ORM models (8 tables)
    │   └── seed.py        # Sample community seeder
    ├── seeds/             # YAML fixtures for the seeder
    ├── engine/
    │   ├── matching.py    # Partner scoring + selection (pure)
    │   ├── naming.py      # Username / room-name generators
    │   └── reveal.py      # Profile reveal state machine (pure)
    ├── services/
    │   ├── ledger_service.py       # Points, badges, celebrations
    │   ├── feed_service.py         # Users, posts, encouragement, check-ins
    │   ├── matchmaking_service.py  # Match + room lifecycle, reveal opt-in
    │   ├── chat_service.py         # Rooms, messages, challenges
    │   ├── content_service.py      # Text-generation boundary + fallbacks
    │   └── relay.py                # Realtime connection registry
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection
        ├── serializers.py # ORM → JSON dicts
        └── routes/        # REST + WebSocket endpoints
"""

__version__ = "0.1.0"
