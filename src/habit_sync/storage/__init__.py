"""
Storage backends.

Components:
- local_store.py: single JSON document on disk (the local "key")
- remote_sqlite.py: account-keyed SQLite table used as a remote store
- remote_rest.py: account-keyed PostgREST table over HTTP
"""
