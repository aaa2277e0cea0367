"""JSON-file backed stores.

Each store owns one file under the configured state directory and serialises
access with a process-local lock. They are local-first and easy to swap for a
database-backed implementation with the same methods.
"""
