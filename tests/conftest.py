"""
Test configuration for the loyalty server.
"""
from datetime import datetime, timezone as dt_timezone

import pytest
from rest_framework.test import APIClient


@pytest.fixture
def now():
    """Fixed evaluation moment; services take ``now`` explicitly."""
    return datetime(2025, 6, 30, 12, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def tiers(db):
    """Bronze (base) through Platinum with points thresholds."""
    from tests.factories import MembershipTierFactory

    return {
        'bronze': MembershipTierFactory(name='bronze', display_name='Bronze', hierarchy_level=0, points_required=0),
        'silver': MembershipTierFactory(name='silver', display_name='Silver', hierarchy_level=1, points_required=50),
        'gold': MembershipTierFactory(name='gold', display_name='Gold', hierarchy_level=2, points_required=100),
        'platinum': MembershipTierFactory(
            name='platinum', display_name='Platinum', hierarchy_level=3, points_required=500
        ),
    }


@pytest.fixture
def bronze_tier(tiers):
    return tiers['bronze']


@pytest.fixture
def silver_tier(tiers):
    return tiers['silver']


@pytest.fixture
def gold_tier(tiers):
    return tiers['gold']


@pytest.fixture
def customer(bronze_tier):
    from tests.factories import CustomerFactory
    return CustomerFactory(tier=bronze_tier)


@pytest.fixture
def point_criteria(db):
    from tests.factories import PointCriteriaFactory
    return PointCriteriaFactory(unique_code='CUSTOMER_SERVICE')


@pytest.fixture
def admin_api_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def user_api_client(db):
    from tests.factories import UserFactory
    client = APIClient()
    client.force_authenticate(user=UserFactory())
    return client
