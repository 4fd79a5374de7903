"""
Membership tier serializers.
"""
from rest_framework import serializers
from ..models import MembershipTier


class MembershipTierSerializer(serializers.ModelSerializer):
    """
    Serializer for membership tier information.
    Used for nested serialization in priority customer records.
    """
    class Meta:
        model = MembershipTier
        fields = ['id', 'name', 'display_name', 'hierarchy_level', 'points_required', 'benefits']
        read_only_fields = fields
