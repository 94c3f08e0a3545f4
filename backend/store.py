"""
MongoDB access for the DishDash backend.

A ``Store`` is built once at startup and handed to the app and to every
component that reads or writes documents; ``close()`` releases the client.
"""

import logging

from pymongo import ASCENDING, MongoClient
from pymongo.errors import OperationFailure
from pymongo.server_api import ServerApi

logger = logging.getLogger(__name__)


class Store:
    """Holds the database handle and the collections the app uses"""

    def __init__(self, db, client=None):
        self.db = db
        self.client = client
        self.users = db['users']
        self.menu = db['menu']
        self.reviews = db['reviews']
        self.carts = db['carts']
        self.payments = db['payments']

    @classmethod
    def connect(cls, uri, db_name):
        client = MongoClient(uri, server_api=ServerApi('1', strict=True, deprecation_errors=True))
        store = cls(client[db_name], client=client)
        logger.info('Connected to MongoDB database %s', db_name)
        return store

    def ensure_indexes(self):
        """Unique e-mail index so concurrent sign-ins cannot create duplicate users"""
        try:
            self.users.create_index([('email', ASCENDING)], unique=True, name='email_unique')
        except OperationFailure as e:
            # existing duplicate e-mails block the index; sign-in still works without it
            logger.error('Could not create unique users.email index: %s', e)
        self.carts.create_index([('email', ASCENDING)], name='cart_email')
        self.payments.create_index([('email', ASCENDING)], name='payment_email')

    def ping(self):
        self.db.command('ping')

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info('MongoDB connection closed')
