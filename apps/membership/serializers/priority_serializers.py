"""
Priority customer serializers.
"""
from rest_framework import serializers

from ..models import MembershipTier, PriorityCustomer
from .tier_serializers import MembershipTierSerializer


class PriorityCustomerSerializer(serializers.ModelSerializer):
    """
    Serializer for priority customer records.
    Used for: GET /api/membership/priority-customers/
    """
    customer_id = serializers.CharField(source='customer.customer_id', read_only=True)
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    current_tier = serializers.CharField(source='customer.tier.display_name', read_only=True, default=None)
    total_points = serializers.IntegerField(source='customer.total_points', read_only=True)
    tier = MembershipTierSerializer(read_only=True)
    added_by = serializers.CharField(source='added_by.username', read_only=True, default=None)

    class Meta:
        model = PriorityCustomer
        fields = [
            'id', 'customer_id', 'customer_name', 'current_tier', 'total_points',
            'tier', 'reason', 'is_active', 'added_by', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PriorityCustomerCreateSerializer(serializers.Serializer):
    """Used for: POST /api/membership/priority-customers/"""
    customer_id = serializers.CharField(max_length=50)
    tier = serializers.SlugRelatedField(slug_field='name', queryset=MembershipTier.objects.all())
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class PriorityCustomerUpdateSerializer(serializers.Serializer):
    """Used for: PATCH /api/membership/priority-customers/{id}/"""
    tier = serializers.SlugRelatedField(
        slug_field='name', queryset=MembershipTier.objects.all(), required=False
    )
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
