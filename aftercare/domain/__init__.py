"""
Post-sale lifecycle core.

Pure, storage-free rules for returns, repairs, support tickets, chat
sessions, appointments, feedback and goodwill. Every operation takes an
immutable entity and returns a Result; nothing here performs I/O.
"""
