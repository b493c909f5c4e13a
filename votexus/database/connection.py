import logging
from typing import Any, Callable, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession
from pymongo.errors import OperationFailure

from votexus import config

logger = logging.getLogger(__name__)

ELECTIONS_COLLECTION_NAME = "elections"
CANDIDATES_COLLECTION_NAME = "candidates"
VOTERS_COLLECTION_NAME = "voters"

# Server error code for "Transaction numbers are only allowed on a replica set member or mongos"
ILLEGAL_OPERATION = 20


class MongoConnector:
    """Holds the client, the collections and what the server supports."""

    _instance = None

    def __init__(self, client: MongoClient, db_name: str, transactions: str = "auto"):
        self.client = client
        self.db = client[db_name]
        self.elections = self.db[ELECTIONS_COLLECTION_NAME]
        self.candidates = self.db[CANDIDATES_COLLECTION_NAME]
        self.voters = self.db[VOTERS_COLLECTION_NAME]
        self._transactions_mode = transactions
        self._transactions: Optional[bool] = None
        self.ensure_indexes()

    @classmethod
    def instance(cls) -> "MongoConnector":
        if cls._instance is None:
            try:
                client = MongoClient(config.MONGO_URI)
                client.server_info()
                cls._instance = cls(client, config.MONGO_DB, config.MONGO_TRANSACTIONS)
                logger.info(f"Connected to MongoDB: {config.MONGO_DB}")
            except Exception as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise
        return cls._instance

    def ensure_indexes(self) -> None:
        self.elections.create_index([("isDeleted", ASCENDING)])
        self.candidates.create_index([("election", ASCENDING)])
        self.candidates.create_index([("voteCount", DESCENDING)])
        self.voters.create_index("email", unique=True)

    @property
    def transactions(self) -> bool:
        if self._transactions is None:
            if self._transactions_mode == "on":
                self._transactions = True
            elif self._transactions_mode == "off":
                self._transactions = False
            else:
                self._transactions = self._server_supports_transactions()
            logger.info(f"Multi-document transactions enabled: {self._transactions}")
        return self._transactions

    def disable_transactions(self) -> None:
        self._transactions = False

    def _server_supports_transactions(self) -> bool:
        hello = self.client.admin.command("hello")
        return "setName" in hello or hello.get("msg") == "isdbgrid"

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB connection closed")


def get_connector() -> MongoConnector:
    """FastAPI dependency returning the shared connector."""
    return MongoConnector.instance()


def run_transaction(connector: MongoConnector, callback: Callable[[Optional[ClientSession]], Any]) -> Any:
    """
    Run ``callback(session)`` inside a multi-document transaction.

    When the deployment cannot run transactions (standalone server) the
    callback is called with ``session=None`` and its writes happen one by
    one. Callbacks must therefore be correct without a session too.
    """
    if connector.transactions:
        try:
            with connector.client.start_session() as session:
                return session.with_transaction(callback)
        except OperationFailure as e:
            if e.code != ILLEGAL_OPERATION:
                raise
            logger.warning(f"Transactions not supported by this deployment, writing sequentially: {e}")
            connector.disable_transactions()
    return callback(None)
