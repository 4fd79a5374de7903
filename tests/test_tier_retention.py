"""
Tests for tier retention evaluation and downgrade target selection.
"""
from datetime import timedelta
from unittest import mock

import pytest
from django.db import InterfaceError, OperationalError
from django.test import override_settings

from apps.membership.models import MembershipTier
from apps.membership.services import RetentionDecision, TierRetentionEvaluator
from apps.points.models import PointsTransaction
from apps.points.services import TransactionLog
from tests.factories import CustomerFactory, TierEligibilityCriteriaFactory


def record_earn(customer, points, when):
    return TransactionLog.append(customer, PointsTransaction.TYPE_EARN, points, now=when)


@pytest.mark.django_db
class TestWithoutCriteria:

    def test_gold_below_threshold_downgrades_to_base(self, tiers, now):
        customer = CustomerFactory(tier=tiers['gold'], total_points=40)
        evaluator = TierRetentionEvaluator(now=now)

        assert evaluator.evaluate(customer, tiers['gold']) is RetentionDecision.DOWNGRADE

        ordered = list(MembershipTier.objects.order_by('-hierarchy_level'))
        target = evaluator.select_downgrade_target(customer, tiers['gold'], ordered, tiers['bronze'])
        assert target == tiers['bronze']

    def test_threshold_met_retains(self, tiers, now):
        customer = CustomerFactory(tier=tiers['gold'], total_points=100)

        assert TierRetentionEvaluator(now=now).retains(customer, tiers['gold'])

    def test_target_is_highest_lower_tier_that_passes(self, tiers, now):
        customer = CustomerFactory(tier=tiers['platinum'], total_points=120)
        evaluator = TierRetentionEvaluator(now=now)
        ordered = list(MembershipTier.objects.order_by('-hierarchy_level'))

        target = evaluator.select_downgrade_target(customer, tiers['platinum'], ordered, tiers['bronze'])

        assert target == tiers['gold']


@pytest.mark.django_db
class TestConsecutivePeriods:

    @pytest.fixture
    def gold_criteria(self, tiers):
        return TierEligibilityCriteriaFactory(
            tier=tiers['gold'],
            evaluation_period_days=30,
            consecutive_periods_required=2,
            net_earning_required=100,
        )

    @pytest.fixture
    def gold_customer(self, tiers):
        return CustomerFactory(tier=tiers['gold'], total_points=0)

    def test_all_periods_met_retains(self, gold_criteria, gold_customer, tiers, now):
        record_earn(gold_customer, 150, now - timedelta(days=10))
        record_earn(gold_customer, 100, now - timedelta(days=40))

        decision = TierRetentionEvaluator(now=now).evaluate(gold_customer, tiers['gold'])

        assert decision is RetentionDecision.RETAIN

    def test_older_period_short_downgrades(self, gold_criteria, gold_customer, tiers, now):
        record_earn(gold_customer, 150, now - timedelta(days=10))
        record_earn(gold_customer, 99, now - timedelta(days=40))

        decision = TierRetentionEvaluator(now=now).evaluate(gold_customer, tiers['gold'])

        assert decision is RetentionDecision.DOWNGRADE

    def test_first_failing_period_stops_the_check(self, gold_criteria, gold_customer, tiers, now):
        record_earn(gold_customer, 500, now - timedelta(days=40))
        evaluator = TierRetentionEvaluator(now=now)

        with mock.patch.object(
            TierRetentionEvaluator, 'period_earnings', wraps=TierRetentionEvaluator.period_earnings
        ) as period_earnings:
            decision = evaluator.evaluate(gold_customer, tiers['gold'])

        assert decision is RetentionDecision.DOWNGRADE
        assert period_earnings.call_count == 1

    def test_window_start_is_inclusive_and_end_exclusive(self, gold_criteria, gold_customer, tiers, now):
        record_earn(gold_customer, 100, now - timedelta(days=30))
        record_earn(gold_customer, 100, now - timedelta(days=60))
        record_earn(gold_customer, 1000, now)

        assert TierRetentionEvaluator.period_earnings(gold_customer, now - timedelta(days=30), now) == 100
        assert TierRetentionEvaluator(now=now).retains(gold_customer, tiers['gold'])

    def test_only_completed_earn_transactions_count(self, gold_criteria, gold_customer, now):
        record_earn(gold_customer, 100, now - timedelta(days=1))
        TransactionLog.append(
            gold_customer, PointsTransaction.TYPE_REDEEM, -80,
            metadata={'redeemed_points': 80}, now=now - timedelta(days=1),
        )
        PointsTransaction.objects.create(
            transaction_id='EARN-PENDING-1', customer=gold_customer,
            transaction_type=PointsTransaction.TYPE_EARN, points=500,
            status=PointsTransaction.STATUS_PENDING, transaction_date=now - timedelta(days=1),
        )

        assert TierRetentionEvaluator.period_earnings(gold_customer, now - timedelta(days=30), now) == 100

    def test_inactive_criteria_fall_back_to_threshold(self, gold_criteria, tiers, now):
        gold_criteria.is_active = False
        gold_criteria.save()
        customer = CustomerFactory(tier=tiers['gold'], total_points=150)

        assert TierRetentionEvaluator(now=now).retains(customer, tiers['gold'])

    def test_points_alone_do_not_retain_by_default(self, gold_criteria, tiers, now):
        customer = CustomerFactory(tier=tiers['gold'], total_points=10000)

        assert TierRetentionEvaluator(now=now).evaluate(customer, tiers['gold']) is RetentionDecision.DOWNGRADE

    @override_settings(LOYALTY_RETENTION_POINTS_FAST_PATH=True)
    def test_fast_path_retains_on_points(self, gold_criteria, tiers, now):
        customer = CustomerFactory(tier=tiers['gold'], total_points=100)

        assert TierRetentionEvaluator(now=now).evaluate(customer, tiers['gold']) is RetentionDecision.RETAIN

    def test_fast_path_still_checks_periods_below_threshold(self, gold_criteria, tiers, now):
        customer = CustomerFactory(tier=tiers['gold'], total_points=99)
        evaluator = TierRetentionEvaluator(now=now, points_fast_path=True)

        assert evaluator.evaluate(customer, tiers['gold']) is RetentionDecision.DOWNGRADE

    def test_unexpected_error_fails_open(self, gold_criteria, gold_customer, tiers, now):
        with mock.patch.object(TierRetentionEvaluator, 'period_earnings', side_effect=RuntimeError('db')):
            decision = TierRetentionEvaluator(now=now).evaluate(gold_customer, tiers['gold'])

        assert decision is RetentionDecision.RETAIN

    @pytest.mark.parametrize('error', [OperationalError('connection lost'), InterfaceError('closed')])
    def test_connection_errors_propagate(self, gold_criteria, gold_customer, tiers, now, error):
        with mock.patch.object(TierRetentionEvaluator, 'period_earnings', side_effect=error):
            with pytest.raises(type(error)):
                TierRetentionEvaluator(now=now).evaluate(gold_customer, tiers['gold'])


class TestPriorityFloor:

    def test_clamps_target_to_priority_minimum(self):
        bronze = MembershipTier(name='bronze', hierarchy_level=0)
        silver = MembershipTier(name='silver', hierarchy_level=1)

        assert TierRetentionEvaluator.apply_priority_floor(bronze, silver) is silver

    def test_keeps_target_at_or_above_minimum(self):
        silver = MembershipTier(name='silver', hierarchy_level=1)
        gold = MembershipTier(name='gold', hierarchy_level=2)

        assert TierRetentionEvaluator.apply_priority_floor(gold, silver) is gold
        assert TierRetentionEvaluator.apply_priority_floor(gold, None) is gold
