"""openrgb-fade application layer (CLI, startup, session)."""
