"""
Points transaction and ledger entry serializers.
"""
from rest_framework import serializers

from ..models import PointsLedgerEntry, PointsTransaction


class PointsTransactionSerializer(serializers.ModelSerializer):
    """
    Serializer for transaction log rows.
    Used for: GET /api/points/customers/{customer_id}/transactions/
    """
    transaction_type_display = serializers.CharField(source='get_transaction_type_display', read_only=True)
    point_criteria = serializers.CharField(source='point_criteria.unique_code', read_only=True, default=None)
    app_type = serializers.CharField(source='app_type.name', read_only=True, default=None)

    class Meta:
        model = PointsTransaction
        fields = [
            'transaction_id', 'transaction_type', 'transaction_type_display', 'points',
            'status', 'note', 'metadata', 'point_criteria', 'app_type',
            'reference_id', 'transaction_date', 'created_at'
        ]
        read_only_fields = fields


class PointsLedgerEntrySerializer(serializers.ModelSerializer):
    """
    Serializer for ledger entries.
    Used for: GET /api/points/customers/{customer_id}/ledger/
    """
    transaction_id = serializers.CharField(source='transaction.transaction_id', read_only=True, default=None)

    class Meta:
        model = PointsLedgerEntry
        fields = [
            'id', 'original_points', 'points', 'status', 'earned_at', 'expiry_date',
            'redeemed_at', 'expired_at', 'transaction_id', 'metadata'
        ]
        read_only_fields = fields
