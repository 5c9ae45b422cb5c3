"""
Keyed storage for stake positions and the ledger journal.

Every write method changes the position map and appends the journal entry
together, or does neither.
"""

import logging
import threading
from typing import Dict, List, Optional

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tierstake.database.models import Base, LedgerRecord, StakePosition
from tierstake.database.records import LedgerEntry, Position

logger = logging.getLogger(__name__)


class PositionStore:
    """
    Abstract base class for position stores.
    """

    def get(self, participant: str) -> Optional[Position]:
        """Return the participant's position, or None if there is none"""
        raise NotImplementedError("Subclasses must implement get")

    def positions(self) -> List[Position]:
        """Return all active positions"""
        raise NotImplementedError("Subclasses must implement positions")

    def put(self, position: Position, entry: LedgerEntry):
        """Insert or replace a position and journal the entry"""
        raise NotImplementedError("Subclasses must implement put")

    def delete(self, participant: str, entry: LedgerEntry):
        """Remove a position and journal the entry"""
        raise NotImplementedError("Subclasses must implement delete")

    def record(self, entry: LedgerEntry):
        """Journal an entry that does not touch any position"""
        raise NotImplementedError("Subclasses must implement record")

    def revert(self, entry: LedgerEntry, previous: Optional[Position] = None):
        """
        Undo a write: drop the newest journal entry matching `entry` and, if
        given, put `previous` back as the participant's position
        """
        raise NotImplementedError("Subclasses must implement revert")

    def history(self, participant: Optional[str] = None) -> List[LedgerEntry]:
        """Return journal entries, oldest first, optionally for one participant"""
        raise NotImplementedError("Subclasses must implement history")


class InMemoryPositionStore(PositionStore):
    """Dictionary-backed store. Nothing survives the process."""

    def __init__(self):
        self._positions: Dict[str, Position] = {}
        self._journal: List[LedgerEntry] = []
        self._lock = threading.RLock()

    def get(self, participant: str) -> Optional[Position]:
        with self._lock:
            return self._positions.get(participant)

    def positions(self) -> List[Position]:
        with self._lock:
            return list(self._positions.values())

    def put(self, position: Position, entry: LedgerEntry):
        with self._lock:
            self._positions[position.participant] = position
            self._journal.append(entry)

    def delete(self, participant: str, entry: LedgerEntry):
        with self._lock:
            if participant not in self._positions:
                raise KeyError(f"No position for {participant}")
            del self._positions[participant]
            self._journal.append(entry)

    def record(self, entry: LedgerEntry):
        with self._lock:
            self._journal.append(entry)

    def revert(self, entry: LedgerEntry, previous: Optional[Position] = None):
        with self._lock:
            for index in range(len(self._journal) - 1, -1, -1):
                if self._journal[index] == entry:
                    del self._journal[index]
                    break
            else:
                raise KeyError(f"No {entry.kind} entry for {entry.participant} at {entry.timestamp}")
            if previous is not None:
                self._positions[previous.participant] = previous

    def history(self, participant: Optional[str] = None) -> List[LedgerEntry]:
        with self._lock:
            if participant is None:
                return list(self._journal)
            return [entry for entry in self._journal if entry.participant == participant]


class SQLPositionStore(PositionStore):
    """
    SQLAlchemy-backed store.

    Each write runs in its own session transaction, so a failed write
    leaves both tables untouched.
    """

    def __init__(self, database_url: str = "sqlite:///:memory:", engine=None):
        """
        Initialize the store and create its tables.

        Args:
            database_url: SQLAlchemy URL, ignored if engine is given
            engine: Optional pre-built engine
        """
        if engine is None:
            engine_kwargs = {}
            if database_url.startswith("sqlite") and ":memory:" in database_url:
                # One shared connection, or every session sees a fresh database
                engine_kwargs = {
                    "connect_args": {"check_same_thread": False},
                    "poolclass": StaticPool,
                }
            engine = create_engine(database_url, **engine_kwargs)

        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        Base.metadata.create_all(engine)
        logger.info(f"Position store ready at {engine.url}")

    def get(self, participant: str) -> Optional[Position]:
        with self._session_factory() as session:
            row = session.get(StakePosition, participant)
            return self._to_position(row) if row is not None else None

    def positions(self) -> List[Position]:
        with self._session_factory() as session:
            rows = session.execute(
                select(StakePosition).order_by(StakePosition.participant)
            ).scalars().all()
            return [self._to_position(row) for row in rows]

    def put(self, position: Position, entry: LedgerEntry):
        try:
            with self._session_factory.begin() as session:
                self._write_position(session, position)
                session.add(self._to_record(entry))
        except SQLAlchemyError as e:
            logger.error(f"Error saving position for {position.participant}: {str(e)}")
            raise

    def delete(self, participant: str, entry: LedgerEntry):
        try:
            with self._session_factory.begin() as session:
                row = session.get(StakePosition, participant)
                if row is None:
                    raise KeyError(f"No position for {participant}")
                session.delete(row)
                session.add(self._to_record(entry))
        except SQLAlchemyError as e:
            logger.error(f"Error deleting position for {participant}: {str(e)}")
            raise

    def record(self, entry: LedgerEntry):
        try:
            with self._session_factory.begin() as session:
                session.add(self._to_record(entry))
        except SQLAlchemyError as e:
            logger.error(f"Error recording {entry.kind} entry: {str(e)}")
            raise

    def revert(self, entry: LedgerEntry, previous: Optional[Position] = None):
        try:
            with self._session_factory.begin() as session:
                record = session.execute(
                    select(LedgerRecord)
                    .where(
                        LedgerRecord.kind == entry.kind,
                        LedgerRecord.participant == entry.participant,
                        LedgerRecord.timestamp == entry.timestamp,
                    )
                    .order_by(LedgerRecord.id.desc())
                    .limit(1)
                ).scalars().first()
                if record is None:
                    raise KeyError(f"No {entry.kind} entry for {entry.participant} at {entry.timestamp}")
                session.delete(record)
                if previous is not None:
                    self._write_position(session, previous)
        except SQLAlchemyError as e:
            logger.error(f"Error reverting {entry.kind} entry for {entry.participant}: {str(e)}")
            raise

    def history(self, participant: Optional[str] = None) -> List[LedgerEntry]:
        with self._session_factory() as session:
            query = select(LedgerRecord).order_by(LedgerRecord.id)
            if participant is not None:
                query = query.where(LedgerRecord.participant == participant)
            rows = session.execute(query).scalars().all()
            return [
                LedgerEntry(
                    kind=row.kind,
                    participant=row.participant,
                    amount=row.amount,
                    reward=row.reward,
                    timestamp=row.timestamp,
                )
                for row in rows
            ]

    def dispose(self):
        """Release pooled connections."""
        self.engine.dispose()

    @staticmethod
    def _write_position(session, position: Position):
        row = session.get(StakePosition, position.participant)
        if row is None:
            row = StakePosition(participant=position.participant)
            session.add(row)
        row.staked_amount = position.staked_amount
        row.staked_at = position.staked_at

    @staticmethod
    def _to_position(row: StakePosition) -> Position:
        return Position(
            participant=row.participant,
            staked_amount=row.staked_amount,
            staked_at=row.staked_at,
        )

    @staticmethod
    def _to_record(entry: LedgerEntry) -> LedgerRecord:
        return LedgerRecord(
            kind=entry.kind,
            participant=entry.participant,
            amount=entry.amount,
            reward=entry.reward,
            timestamp=entry.timestamp,
        )
