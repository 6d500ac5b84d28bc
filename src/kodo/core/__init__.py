"""Core kodo modules: settings, items, scanning and history."""
