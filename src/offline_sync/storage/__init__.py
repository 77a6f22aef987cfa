"""
Durable store backends: in-memory, SQLite, JSON files.
"""
