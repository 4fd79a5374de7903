"""
Tests for priority customer protection records.
"""
import pytest

from apps.common.exceptions import ConflictError, LoyaltyValidationError
from apps.membership.models import PriorityCustomer
from apps.membership.services import PriorityCustomerService
from tests.factories import CustomerFactory, StaffUserFactory


@pytest.mark.django_db
class TestPriorityCustomerService:

    def test_create(self, customer, silver_tier):
        admin = StaffUserFactory()

        record = PriorityCustomerService.create(customer, silver_tier, reason='Key account', added_by=admin)

        assert record.is_active
        assert record.added_by == admin
        assert PriorityCustomerService.get_active_tier(customer) == silver_tier

    def test_duplicate_active_record_conflicts(self, customer, silver_tier, gold_tier):
        PriorityCustomerService.create(customer, silver_tier)

        with pytest.raises(ConflictError):
            PriorityCustomerService.create(customer, gold_tier)

    def test_create_reactivates_inactive_record(self, customer, silver_tier, gold_tier):
        record = PriorityCustomerService.create(customer, silver_tier, reason='First')
        PriorityCustomerService.deactivate(record)

        reactivated = PriorityCustomerService.create(customer, gold_tier, reason='Second')

        assert reactivated.pk == record.pk
        assert reactivated.tier == gold_tier
        assert reactivated.reason == 'Second'
        assert PriorityCustomer.objects.count() == 1

    def test_deactivate_keeps_the_row(self, customer, silver_tier):
        record = PriorityCustomerService.create(customer, silver_tier)

        PriorityCustomerService.deactivate(record)

        record.refresh_from_db()
        assert not record.is_active
        assert PriorityCustomerService.get_active_tier(customer) is None

    def test_update(self, customer, silver_tier, gold_tier):
        record = PriorityCustomerService.create(customer, silver_tier)

        PriorityCustomerService.update(record, tier=gold_tier, reason='Upgraded contract')

        record.refresh_from_db()
        assert record.tier == gold_tier
        assert record.reason == 'Upgraded contract'

    def test_update_requires_a_field(self, customer, silver_tier):
        record = PriorityCustomerService.create(customer, silver_tier)

        with pytest.raises(LoyaltyValidationError):
            PriorityCustomerService.update(record)

    def test_search(self, silver_tier, gold_tier):
        alice = CustomerFactory(name='Alice Wong')
        bob = CustomerFactory(name='Bob Stone')
        PriorityCustomerService.create(alice, silver_tier)
        bob_record = PriorityCustomerService.create(bob, gold_tier)
        PriorityCustomerService.deactivate(bob_record)

        assert [r.customer for r in PriorityCustomerService.search(search='alice')] == [alice]
        assert [r.customer for r in PriorityCustomerService.search(tier=gold_tier)] == [bob]
        assert [r.customer for r in PriorityCustomerService.search(is_active=True)] == [alice]
