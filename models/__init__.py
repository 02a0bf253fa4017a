"""
Persistence layer. `storage` is the process-wide DBStorage singleton;
the application factory calls storage.reload() with the configured URL.
"""
from models.db_storage import DBStorage

storage = DBStorage()
