"""Persistence package: exposes the DBStorage singleton as `storage`."""
from models.db_storage import DBStorage

storage = DBStorage()
