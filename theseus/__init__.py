"""Minecraft launcher core: progress events, rules, argument building, processors and logging."""

__version__ = "0.1.0"

__all__ = ["arguments", "emit", "events", "launcher", "logger", "rules"]