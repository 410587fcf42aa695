"""Cross-cutting pieces used by every context: settings-aware logging, errors, auth, pagination and persistence."""
