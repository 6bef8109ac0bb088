"""
Joke persistence: the Store backends, the ETL worker and the read-only joke API.
"""
