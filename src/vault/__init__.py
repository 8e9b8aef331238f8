"""Obsidian vault storage and path rules."""
