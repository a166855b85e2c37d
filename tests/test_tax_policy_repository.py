"""Tests for the tax policy store and the bulk include_previous_years toggle."""

from decimal import Decimal

import pytest
from sqlalchemy import select

from factories import OTHER_TEMPLE_ID, TEMPLE_ID
from temple_tax.database.models import TaxRegistrationRecord, TaxSettingRecord
from temple_tax.database.repositories import TaxPolicyRepository
from temple_tax.domain.exceptions import NotFound, ValidationError


@pytest.fixture
def repo(db_session, settings):
    return TaxPolicyRepository(db_session, settings)


class TestUpsert:

    def test_creates_then_updates_same_year(self, repo, db_session):
        policy, created = repo.upsert_policy(TEMPLE_ID, 2024, 500, description="Annual")
        assert created is True
        assert policy.id is not None
        assert policy.tax_amount == Decimal("500.00")

        updated, created = repo.upsert_policy(
            TEMPLE_ID, 2024, "550.50", include_previous_years=True
        )
        assert created is False
        assert updated.id == policy.id
        assert updated.tax_amount == Decimal("550.50")
        assert updated.include_previous_years is True

        rows = db_session.scalars(select(TaxSettingRecord)).all()
        assert len(rows) == 1

    def test_same_year_for_another_temple_is_separate(self, repo):
        repo.upsert_policy(TEMPLE_ID, 2024, 500)
        _, created = repo.upsert_policy(OTHER_TEMPLE_ID, 2024, 700)

        assert created is True
        assert repo.get_policy(TEMPLE_ID, 2024).tax_amount == Decimal("500.00")
        assert repo.get_policy(OTHER_TEMPLE_ID, 2024).tax_amount == Decimal("700.00")

    @pytest.mark.parametrize("amount", [0, -10, "abc", None, "0.001", "0.004", "1e30", "10000000000"])
    def test_rejects_non_positive_or_invalid_amount(self, repo, amount):
        with pytest.raises(ValidationError) as exc_info:
            repo.upsert_policy(TEMPLE_ID, 2024, amount)
        assert exc_info.value.field == "taxAmount"

    def test_sub_cent_amount_that_rounds_up_is_kept(self, repo):
        policy, _ = repo.upsert_policy(TEMPLE_ID, 2024, "0.005")
        assert policy.tax_amount == Decimal("0.01")

    def test_amount_at_column_limit_accepted(self, repo):
        policy, _ = repo.upsert_policy(TEMPLE_ID, 2024, "9999999999.99")
        assert policy.tax_amount == Decimal("9999999999.99")

    @pytest.mark.parametrize("year", [2019, 2051, "next"])
    def test_rejects_year_outside_range(self, repo, year):
        with pytest.raises(ValidationError) as exc_info:
            repo.upsert_policy(TEMPLE_ID, year, 500)
        assert exc_info.value.field == "year"

    def test_rejected_upsert_writes_nothing(self, repo, db_session):
        with pytest.raises(ValidationError):
            repo.upsert_policy(TEMPLE_ID, 2024, 0)
        assert db_session.scalars(select(TaxSettingRecord)).all() == []


class TestReads:

    def test_active_policies_ascending_and_filtered(self, repo, seed_policies):
        seed_policies((2025, 600, False), (2023, 450, True))
        seed_policies((2024, 500, True), is_active=False)

        years = [p.year for p in repo.list_active_policies(TEMPLE_ID)]
        assert years == [2023, 2025]

    def test_list_policies_newest_first_includes_inactive(self, repo, seed_policies):
        seed_policies((2023, 450, True), (2025, 600, False))
        seed_policies((2024, 500, True), is_active=False)

        assert [p.year for p in repo.list_policies(TEMPLE_ID)] == [2025, 2024, 2023]

    def test_get_active_policy_hides_inactive_rows(self, repo, seed_policies):
        seed_policies((2024, 500, True), is_active=False)

        assert repo.get_policy(TEMPLE_ID, 2024) is not None
        assert repo.get_active_policy(TEMPLE_ID, 2024) is None

    def test_unconfigured_year_is_none(self, repo):
        assert repo.get_policy(TEMPLE_ID, 2030) is None


class TestDelete:

    def test_delete_removes_row(self, repo):
        policy, _ = repo.upsert_policy(TEMPLE_ID, 2024, 500)
        repo.delete_policy(TEMPLE_ID, policy.id)
        assert repo.get_policy(TEMPLE_ID, 2024) is None

    def test_delete_missing_raises_not_found(self, repo):
        with pytest.raises(NotFound):
            repo.delete_policy(TEMPLE_ID, 999)

    def test_cannot_delete_another_temples_policy(self, repo):
        policy, _ = repo.upsert_policy(OTHER_TEMPLE_ID, 2024, 500)
        with pytest.raises(NotFound):
            repo.delete_policy(TEMPLE_ID, policy.id)
        assert repo.get_policy(OTHER_TEMPLE_ID, 2024) is not None


class TestBulkToggle:

    def test_sets_flag_on_every_year_of_the_temple(self, repo, seed_policies):
        seed_policies((2023, 450, True), (2024, 500, False), (2025, 600, False))
        seed_policies((2024, 700, False), temple_id=OTHER_TEMPLE_ID)

        updated = repo.set_include_previous_years(TEMPLE_ID, True)

        assert updated == 3
        assert all(p.include_previous_years for p in repo.list_policies(TEMPLE_ID))
        assert repo.get_policy(OTHER_TEMPLE_ID, 2024).include_previous_years is False

    def test_restricted_to_listed_years(self, repo, seed_policies):
        seed_policies((2023, 450, True), (2024, 500, True), (2025, 600, True))

        updated = repo.set_include_previous_years(TEMPLE_ID, False, years=[2024])

        assert updated == 1
        flags = {p.year: p.include_previous_years for p in repo.list_policies(TEMPLE_ID)}
        assert flags == {2023: True, 2024: False, 2025: True}

    def test_no_policies_updates_nothing(self, repo):
        assert repo.set_include_previous_years(TEMPLE_ID, True) == 0

    def test_saved_registrations_are_untouched(
        self, repo, seed_policies, seed_registration, db_session
    ):
        seed_policies((2023, 450, True), (2024, 500, True))
        record = seed_registration("9876543210", 2024, 500, 200)

        repo.set_include_previous_years(TEMPLE_ID, False)

        db_session.expire_all()
        stored = db_session.get(TaxRegistrationRecord, record.id)
        assert stored.outstanding_amount == Decimal("300.00")
        assert stored.tax_amount == Decimal("500.00")

    def test_toggle_inside_open_transaction_uses_savepoint(self, repo, seed_policies, db_session):
        seed_policies((2023, 450, False), (2024, 500, False))

        # Outer work in progress: the toggle must not commit or discard it.
        repo.get_policy(TEMPLE_ID, 2023)
        assert db_session.in_transaction()

        repo.set_include_previous_years(TEMPLE_ID, True)
        db_session.rollback()

        assert not any(p.include_previous_years for p in repo.list_policies(TEMPLE_ID))
