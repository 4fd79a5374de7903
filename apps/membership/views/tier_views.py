"""
Membership tier views.
"""
from rest_framework.permissions import IsAdminUser
from rest_framework.views import APIView

from apps.common.utils import success_response
from ..models import MembershipTier
from ..serializers import MembershipTierSerializer


class MembershipTierListView(APIView):
    """List tiers from lowest to highest"""
    permission_classes = [IsAdminUser]

    def get(self, request):
        tiers = MembershipTier.objects.order_by('hierarchy_level')
        serializer = MembershipTierSerializer(tiers, many=True)
        return success_response(serializer.data)
