"""Client side of CodeSync: store client, local state and the sync engine."""
