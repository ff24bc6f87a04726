"""Synchronization pipeline.

- scan: which tracked files changed since the cursor
- parse: structural descriptor for one source file
- merge: fold descriptors into a candidate graph
- validate: accept or reject the candidate
- scheduler: the polling loop that wires them together
- storage: cursor, graph and snapshot persistence
"""
