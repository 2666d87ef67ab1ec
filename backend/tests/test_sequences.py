"""Tests for sequence-based ID generation and draft counters."""

import pytest
import sqlalchemy as sa

from draftforge.persistence import Database, DatabaseConfig
from draftforge.persistence.sequences import SequenceService


@pytest.fixture
def db():
    """Create in-memory database with the sequences table."""
    db = Database(DatabaseConfig.in_memory())
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def service(db):
    """Create sequence service over the test database."""
    return SequenceService(db.sequences)


class TestSequenceService:
    """Tests for SequenceService."""

    def test_first_id_starts_at_1(self, db, service):
        """First ID should be 00001."""
        with db.transaction() as conn:
            assert service.next_id(conn, "Contact", "CON") == "CON-00001"

    def test_ids_increment(self, db, service):
        """IDs should increment sequentially."""
        with db.transaction() as conn:
            id1 = service.next_id(conn, "Contact", "CON")
            id2 = service.next_id(conn, "Contact", "CON")
            id3 = service.next_id(conn, "Contact", "CON")

        assert id1 == "CON-00001"
        assert id2 == "CON-00002"
        assert id3 == "CON-00003"

    def test_different_entities_have_separate_sequences(self, db, service):
        """Each entity should have its own sequence."""
        with db.transaction() as conn:
            contact_id = service.next_id(conn, "Contact", "CON")
            company_id = service.next_id(conn, "Company", "CMP")
            contact_id2 = service.next_id(conn, "Contact", "CON")

        assert contact_id == "CON-00001"
        assert company_id == "CMP-00001"
        assert contact_id2 == "CON-00002"

    def test_keys_have_separate_counters(self, db, service):
        """Draft counters are kept per entity ID within a scope."""
        with db.transaction() as conn:
            a1 = service.next_value(conn, "draft:Talkative", "TLK-00001")
            a2 = service.next_value(conn, "draft:Talkative", "TLK-00001")
            b1 = service.next_value(conn, "draft:Talkative", "TLK-00002")

        assert (a1, a2, b1) == (1, 2, 1)

    def test_sequence_persists_across_transactions(self, db, service):
        """Sequence should continue after a new transaction."""
        with db.transaction() as conn:
            service.next_id(conn, "Contact", "CON")
            service.next_id(conn, "Contact", "CON")

        with db.transaction() as conn:
            assert service.next_id(conn, "Contact", "CON") == "CON-00003"

    def test_rollback_rewinds_counter(self, db, service):
        with db.transaction() as conn:
            service.next_id(conn, "Contact", "CON")

        with pytest.raises(RuntimeError):
            with db.transaction() as conn:
                service.next_id(conn, "Contact", "CON")
                raise RuntimeError("rollback")

        with db.transaction() as conn:
            assert service.next_id(conn, "Contact", "CON") == "CON-00002"

    def test_current_value(self, db, service):
        with db.transaction() as conn:
            assert service.current_value(conn, "entity:Contact") == 0
            service.next_id(conn, "Contact", "CON")
            service.next_id(conn, "Contact", "CON")
            assert service.current_value(conn, "entity:Contact") == 2

    def test_large_sequence_numbers(self, db, service):
        """IDs past five digits are not truncated."""
        with db.transaction() as conn:
            conn.execute(
                sa.insert(db.sequences).values(scope="entity:Big", key="", next_value=99999)
            )
            assert service.next_id(conn, "Big", "BIG") == "BIG-99999"
            assert service.next_id(conn, "Big", "BIG") == "BIG-100000"
