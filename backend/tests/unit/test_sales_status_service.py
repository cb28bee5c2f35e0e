"""
Unit tests for the sales status service.

Runs against the in-memory SQLite database from conftest; partial unique
indexes are created there the same way as on PostgreSQL.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from app.exceptions import BusinessRuleError, DuplicateError, NotFoundError, ValidationError
from app.models.sales_status import SalesStatus
from app.schemas.common import PaginationParams
from app.schemas.sales_status import SalesStatusCreate, SalesStatusUpdate
from app.services import sales_status as service
from tests.factories import create_test_sales_status


def _create(db, **fields):
    data = {"status_name": "Booked", "status_code": "book", "status_type": "booked"}
    data.update(fields)
    return service.create_sales_status(db, SalesStatusCreate(**data), user_id=None)


class TestCreate:

    @pytest.mark.unit
    def test_code_is_upper_cased(self, db):
        status = _create(db)
        assert status.status_code == "BOOK"
        assert status.color_code == "#808080"
        assert status.sequence == 1

    @pytest.mark.unit
    def test_duplicate_name_is_case_insensitive(self, db):
        _create(db)
        with pytest.raises(DuplicateError):
            _create(db, status_name="BOOKED", status_code="BK2")

    @pytest.mark.unit
    def test_duplicate_code(self, db):
        _create(db)
        with pytest.raises(DuplicateError):
            _create(db, status_name="Booked Again", status_code="Book")

    @pytest.mark.unit
    def test_deleted_rows_do_not_block_reuse(self, db):
        first = _create(db)
        service.delete_sales_status(db, first.id, user_id=None)

        again = _create(db)
        assert again.id != first.id

    @pytest.mark.unit
    def test_new_default_replaces_old(self, db):
        old = _create(db, is_default=True)
        new = _create(db, status_name="Available", status_code="AVL", status_type="available", is_default=True)

        db.refresh(old)
        assert old.is_default is False
        assert new.is_default is True
        assert service.get_default_status(db).id == new.id


class TestSingleDefaultIndex:

    @pytest.mark.unit
    def test_database_rejects_second_default(self, db):
        create_test_sales_status(db, "available", is_default=True)
        db.commit()

        with pytest.raises(IntegrityError):
            create_test_sales_status(db, "booked", is_default=True)
        db.rollback()

        defaults = db.query(SalesStatus).filter(SalesStatus.is_default.is_(True)).count()
        assert defaults == 1

    @pytest.mark.unit
    def test_deleted_default_does_not_count(self, db):
        create_test_sales_status(db, "available", is_default=True, is_deleted=True)
        create_test_sales_status(db, "booked", is_default=True)
        db.commit()

        assert db.query(SalesStatus).filter(SalesStatus.is_default.is_(True)).count() == 2


class TestUpdate:

    @pytest.mark.unit
    def test_setting_default_clears_others(self, db):
        a = create_test_sales_status(db, "available", is_default=True)
        b = create_test_sales_status(db, "booked")
        db.commit()

        service.update_sales_status(db, b.id, SalesStatusUpdate(is_default=True), user_id=7)

        db.refresh(a)
        db.refresh(b)
        assert a.is_default is False
        assert b.is_default is True
        assert b.updated_by == 7

    @pytest.mark.unit
    def test_rename_to_own_name_is_allowed(self, db):
        status = create_test_sales_status(db, "booked", name="Booked")
        db.commit()

        updated = service.update_sales_status(db, status.id, SalesStatusUpdate(status_name="booked"), user_id=None)
        assert updated.status_name == "booked"

    @pytest.mark.unit
    def test_missing_status(self, db):
        with pytest.raises(NotFoundError):
            service.update_sales_status(db, 999, SalesStatusUpdate(status_name="Nope"), user_id=None)


class TestDefaultProtection:

    @pytest.mark.unit
    def test_cannot_delete_default(self, db):
        status = create_test_sales_status(db, "available", is_default=True)
        db.commit()

        with pytest.raises(BusinessRuleError, match="Cannot delete default sales status"):
            service.delete_sales_status(db, status.id, user_id=None)

        db.refresh(status)
        assert status.is_deleted is False

    @pytest.mark.unit
    def test_cannot_deactivate_default(self, db):
        status = create_test_sales_status(db, "available", is_default=True)
        db.commit()

        with pytest.raises(BusinessRuleError, match="Cannot deactivate default sales status"):
            service.toggle_status_active(db, status.id, user_id=None)

        db.refresh(status)
        assert status.is_active is True

    @pytest.mark.unit
    def test_deleted_status_is_not_found(self, db):
        status = create_test_sales_status(db, "booked")
        db.commit()
        service.delete_sales_status(db, status.id, user_id=None)

        with pytest.raises(NotFoundError):
            service.get_status(db, status.id)


class TestSequence:

    @pytest.mark.unit
    @pytest.mark.parametrize("sequence", [0, -3])
    def test_sequence_below_one_rejected(self, db, sequence):
        status = create_test_sales_status(db, "booked", sequence=4)
        db.commit()

        with pytest.raises(BusinessRuleError):
            service.update_status_sequence(db, status.id, sequence, user_id=None)
        db.refresh(status)
        assert status.sequence == 4

    @pytest.mark.unit
    def test_sequence_one_accepted(self, db):
        status = create_test_sales_status(db, "booked", sequence=4)
        db.commit()

        assert service.update_status_sequence(db, status.id, 1, user_id=None).sequence == 1

    @pytest.mark.unit
    def test_reorder_accepts_duplicates_and_skips_unknown(self, db):
        a = create_test_sales_status(db, "available", sequence=1)
        b = create_test_sales_status(db, "booked", sequence=2)
        db.commit()

        updated = service.reorder_statuses(db, [(a.id, 5), (b.id, 5), (404, 1)], user_id=None)

        assert updated == 2
        db.refresh(a)
        db.refresh(b)
        assert a.sequence == b.sequence == 5


class TestBulkUpdate:

    @pytest.mark.unit
    def test_counts_matched_and_modified(self, db):
        a = create_test_sales_status(db, "available", allows_sale=True)
        b = create_test_sales_status(db, "booked", allows_sale=False)
        db.commit()

        result = service.bulk_update_statuses(db, [a.id, b.id, 999], "allows_sale", True, user_id=None)

        assert result == {"matched": 2, "modified": 1}

    @pytest.mark.unit
    def test_default_is_not_protected(self, db):
        default = create_test_sales_status(db, "available", is_default=True)
        db.commit()

        service.bulk_update_statuses(db, [default.id], "is_active", False, user_id=None)
        db.refresh(default)
        assert default.is_active is False

    @pytest.mark.unit
    def test_deactivated_default_is_not_served(self, db):
        default = create_test_sales_status(db, "available", is_default=True)
        db.commit()

        service.bulk_update_statuses(db, [default.id], "is_active", False, user_id=None)

        with pytest.raises(NotFoundError):
            service.get_default_status(db)


class TestTransitionValidation:

    @pytest.mark.unit
    def test_valid_transition(self, db):
        available = create_test_sales_status(db, "available", name="Available")
        booked = create_test_sales_status(db, "booked", name="Booked")
        db.commit()

        result = service.validate_status_transition(db, available.id, booked.id)

        assert result["is_valid"] is True
        assert result["message"] == "Transition is valid"
        assert "booked" in result["allowed_transitions"]

    @pytest.mark.unit
    def test_closed_to_anything_is_invalid(self, db):
        closed = create_test_sales_status(db, "closed", name="Closed")
        available = create_test_sales_status(db, "available", name="Available")
        db.commit()

        result = service.validate_status_transition(db, closed.id, available.id)

        assert result["is_valid"] is False
        assert result["message"] == "Cannot transition from Closed to Available"
        assert result["allowed_transitions"] == []

    @pytest.mark.unit
    @pytest.mark.parametrize("bad_id", [
        999, "abc", "", None, 0, -4, 1.5,
        2_147_483_648, "99999999999999999999999",
    ])
    def test_unknown_ids_do_not_raise(self, db, bad_id):
        available = create_test_sales_status(db, "available")
        db.commit()

        result = service.validate_status_transition(db, available.id, bad_id)
        assert result == {
            "is_valid": False,
            "message": "One or both statuses not found",
            "allowed_transitions": [],
        }

    @pytest.mark.unit
    def test_numeric_string_ids_resolve(self, db):
        available = create_test_sales_status(db, "available")
        booked = create_test_sales_status(db, "booked")
        db.commit()

        assert service.validate_status_transition(db, str(available.id), str(booked.id))["is_valid"] is True
        assert service.validate_status_transition(db, float(available.id), booked.id)["is_valid"] is True

    @pytest.mark.unit
    def test_required_fields_enforced_when_supplied(self, db):
        available = create_test_sales_status(db, "available")
        booked = create_test_sales_status(db, "booked")
        db.commit()

        result = service.validate_status_transition(db, available.id, booked.id, fields={"booking_date": "2026-03-01"})

        assert result["is_valid"] is False
        assert [r["field"] for r in result["missing_fields"]] == ["deposit_paid"]
        assert result["message"] == "Missing required fields: deposit_paid"

    @pytest.mark.unit
    def test_rules_are_advisory_without_fields(self, db):
        available = create_test_sales_status(db, "available")
        booked = create_test_sales_status(db, "booked")
        db.commit()

        result = service.validate_status_transition(db, available.id, booked.id)

        assert result["is_valid"] is True
        assert len(result["validation_rules"]) == 2


class TestQueries:

    @pytest.mark.unit
    def test_list_filters_and_summary(self, db):
        create_test_sales_status(db, "available", allows_sale=True)
        create_test_sales_status(db, "booked", is_active=False)
        create_test_sales_status(db, "booked")
        create_test_sales_status(db, "sold", is_deleted=True)
        db.commit()

        rows, meta, summary = service.list_sales_statuses(db, PaginationParams(page=1, limit=10), status_type="booked")

        assert len(rows) == 2
        assert meta.total == 2
        assert meta.pages == 1
        assert summary["by_type"]["booked"] == 2
        assert summary["active_statuses"] == 1

    @pytest.mark.unit
    def test_list_rejects_unknown_type(self, db):
        with pytest.raises(ValidationError):
            service.list_sales_statuses(db, PaginationParams(), status_type="booked,flying")

    @pytest.mark.unit
    def test_statistics(self, db):
        create_test_sales_status(db, "available", allows_sale=True)
        create_test_sales_status(db, "booked", requires_approval=True, is_active=False)
        create_test_sales_status(db, "booked")
        db.commit()

        stats = service.get_statistics(db)

        assert stats["total_statuses"] == 3
        assert stats["active_statuses"] == 2
        assert stats["sales_allowed_count"] == 1
        assert stats["approval_required_count"] == 1
        assert stats["by_type"]["booked"] == {"total": 2, "active": 1}

    @pytest.mark.unit
    def test_next_statuses_only_active_allowed_types(self, db):
        booked = create_test_sales_status(db, "booked")
        allotted = create_test_sales_status(db, "allotted")
        create_test_sales_status(db, "contracted", is_active=False)
        create_test_sales_status(db, "available")
        db.commit()

        assert [s.id for s in service.get_next_statuses(db, booked.id)] == [allotted.id]

    @pytest.mark.unit
    def test_sales_allowed_requires_active(self, db):
        live = create_test_sales_status(db, "available", allows_sale=True)
        inactive = create_test_sales_status(db, "booked", allows_sale=True, is_active=False)
        db.commit()

        assert service.is_sales_allowed(db, live.id) is True
        assert service.is_sales_allowed(db, inactive.id) is False
        assert service.is_sales_allowed(db, 999) is False
