"""
Manual points adjustment views (admin only).
"""
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAdminUser

from apps.common.utils import error_response, operation_response

from ..serializers import ManualAddIndividualSerializer, ManualBulkAddSerializer, ManualReduceSerializer
from ..services import ManualAdjustmentService
from ..services.adjustment_service import read_bulk_csv


def _requested_by(request, validated_data):
    return validated_data.get('requested_by') or request.user.get_username()


@api_view(['POST'])
@permission_classes([IsAdminUser])
def add_individual_points(request):
    """Grant a point criteria's fixed award to one customer"""
    serializer = ManualAddIndividualSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid input', serializer.errors)

    data = serializer.validated_data
    movement = ManualAdjustmentService.add_individual(
        customer_ref=data['customer_id'],
        point_criteria_ref=data['point_criteria'],
        requested_by=_requested_by(request, data),
        note=data['note'],
    )
    return operation_response(movement, 'Points added successfully', status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAdminUser])
@parser_classes([JSONParser, MultiPartParser, FormParser])
def add_bulk_points(request):
    """Grant points for many rows; any invalid row rejects the whole batch"""
    serializer = ManualBulkAddSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid input', serializer.errors)

    data = serializer.validated_data
    if data.get('file'):
        rows = read_bulk_csv(data['file'])
        first_row_number = 2  # Header is row 1
    else:
        rows = data['rows']
        first_row_number = 1

    result = ManualAdjustmentService.add_bulk(
        rows,
        requested_by=_requested_by(request, data),
        first_row_number=first_row_number,
    )
    return operation_response(
        result, f'Bulk points added for {result.success_count} rows', status.HTTP_201_CREATED
    )


@api_view(['POST'])
@permission_classes([IsAdminUser])
def reduce_points(request):
    """Deduct points FIFO from a customer's active ledger"""
    serializer = ManualReduceSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid input', serializer.errors)

    data = serializer.validated_data
    movement = ManualAdjustmentService.reduce(
        customer_ref=data['customer_id'],
        amount=data['points'],
        requested_by=_requested_by(request, data),
        note=data['note'],
    )
    return operation_response(movement, 'Points reduced successfully')
