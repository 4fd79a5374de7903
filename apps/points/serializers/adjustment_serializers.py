"""
Request serializers for manual points adjustments and processing runs.
"""
from rest_framework import serializers


class ManualAddIndividualSerializer(serializers.Serializer):
    """
    Serializer for single manual grants.
    Used for: POST /api/points/manual/add-individual/
    """
    customer_id = serializers.CharField(max_length=50)
    point_criteria = serializers.CharField(
        max_length=100,
        help_text="Point criteria id or unique code"
    )
    note = serializers.CharField(max_length=400)
    requested_by = serializers.CharField(
        max_length=100, required=False, allow_blank=True,
        help_text="Requesting application; defaults to the admin username"
    )


class ManualBulkAddSerializer(serializers.Serializer):
    """
    Serializer for bulk manual grants, either JSON rows or a CSV upload.
    Used for: POST /api/points/manual/add-bulk/
    """
    rows = serializers.ListField(child=serializers.DictField(), required=False)
    file = serializers.FileField(required=False)
    requested_by = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs.get('rows') and not attrs.get('file'):
            raise serializers.ValidationError("Provide either rows or a CSV file")
        if attrs.get('rows') and attrs.get('file'):
            raise serializers.ValidationError("Provide rows or a CSV file, not both")
        return attrs


class ManualReduceSerializer(serializers.Serializer):
    """
    Serializer for manual deductions.
    Used for: POST /api/points/manual/reduce/
    """
    customer_id = serializers.CharField(max_length=50)
    points = serializers.IntegerField(min_value=1)
    note = serializers.CharField(max_length=400)
    requested_by = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ProcessRunSerializer(serializers.Serializer):
    """Optional clock override for POST /api/points/process/"""
    now = serializers.DateTimeField(required=False)
