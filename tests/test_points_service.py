"""
Tests for earning and redeeming points through PointsService.
"""
from datetime import timedelta
from unittest import mock

import pytest

from apps.common.exceptions import InsufficientPointsError, LoyaltyValidationError
from apps.points.models import PointsLedgerEntry, PointsTransaction
from apps.points.services import LedgerService, PointsService, TransactionLog


@pytest.mark.django_db
class TestEarnPoints:

    def test_credits_balance_coins_and_ledger(self, customer, now):
        movement = PointsService.earn_points(customer, 120, note='Welcome', now=now)

        customer.refresh_from_db()
        assert customer.total_points == 120
        assert customer.coins == 120
        assert movement.new_balance == 120
        assert movement.transaction.transaction_type == PointsTransaction.TYPE_EARN
        assert movement.transaction.transaction_id.startswith('EARN-')
        assert movement.transaction.transaction_date == now

        entry = PointsLedgerEntry.objects.get(pk=movement.ledger_entry_id)
        assert entry.transaction_id == movement.transaction.pk
        assert entry.points == 120
        assert not movement.has_side_issues
        assert [outcome.name for outcome in movement.side_effects] == ['ledger_entry']

    def test_ledger_failure_is_reported_not_raised(self, customer, now):
        with mock.patch.object(LedgerService, 'grant', side_effect=RuntimeError('ledger down')):
            movement = PointsService.earn_points(customer, 40, now=now)

        customer.refresh_from_db()
        assert customer.total_points == 40
        assert PointsTransaction.objects.filter(transaction_type=PointsTransaction.TYPE_EARN).count() == 1
        assert not PointsLedgerEntry.objects.exists()

        assert movement.has_side_issues
        assert movement.ledger_entry_id is None
        failed = movement.side_effects[0]
        assert (failed.name, failed.succeeded, failed.error) == ('ledger_entry', False, 'ledger down')

    def test_to_dict_reports_balance(self, customer, now):
        movement = PointsService.earn_points(customer, 10, now=now)

        data = movement.to_dict()

        assert data['transaction_id'] == movement.transaction.transaction_id
        assert data['point_balance'] == 10
        assert data['side_effects'][0]['succeeded'] is True

    @pytest.mark.parametrize('points', [0, -5, 2.5, True])
    def test_rejects_non_positive_or_fractional_amounts(self, customer, now, points):
        with pytest.raises(LoyaltyValidationError):
            PointsService.earn_points(customer, points, now=now)

        customer.refresh_from_db()
        assert customer.total_points == 0
        assert not PointsTransaction.objects.exists()


@pytest.mark.django_db
class TestRedeemPoints:

    def test_records_breakdown_and_debits_balance(self, customer, now):
        first = PointsService.earn_points(customer, 50, now=now - timedelta(days=5))
        PointsService.earn_points(customer, 100, now=now - timedelta(days=1))

        movement = PointsService.redeem_points(customer, 60, note='Voucher', now=now)

        customer.refresh_from_db()
        assert customer.total_points == 90
        assert movement.points == -60
        assert movement.transaction.points == -60
        assert movement.transaction.transaction_type == PointsTransaction.TYPE_REDEEM

        metadata = movement.transaction.metadata
        assert metadata['redeemed_points'] == 60
        assert metadata['used_ledger_entries'][0]['ledger_entry_id'] == first.ledger_entry_id
        assert metadata['used_ledger_entries'][0]['points_used'] == 50
        assert TransactionLog.check_balance(customer, now).is_consistent

    def test_insufficient_points_writes_nothing(self, customer, now):
        PointsService.earn_points(customer, 20, now=now)

        with pytest.raises(InsufficientPointsError):
            PointsService.redeem_points(customer, 21, now=now)

        customer.refresh_from_db()
        assert customer.total_points == 20
        assert not PointsTransaction.objects.filter(transaction_type=PointsTransaction.TYPE_REDEEM).exists()
