"""
Points and tier processing trigger.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser

from apps.common.utils import error_response, success_response

from ..serializers import ProcessRunSerializer
from ..services import PointsTierProcessor


@api_view(['POST'])
@permission_classes([IsAdminUser])
def process_points_and_tiers(request):
    """Run the expiry sweep and tier retention now, or at ``now`` if given"""
    serializer = ProcessRunSerializer(data=request.data)
    if not serializer.is_valid():
        return error_response('Invalid input', serializer.errors)

    report = PointsTierProcessor.run(now=serializer.validated_data.get('now'))
    return success_response(report.to_dict(), 'Points and tier processing completed')
