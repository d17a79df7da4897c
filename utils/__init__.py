"""Shared helpers: Lua output, experience curve, versions, cache, config and logging."""
