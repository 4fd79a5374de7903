"""
Priority customer views.
"""
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.views import APIView

from apps.common.exceptions import NotFoundError
from apps.common.utils import error_response, paginated_response, success_response
from apps.customers.models import Customer
from ..models import MembershipTier, PriorityCustomer
from ..serializers import (
    PriorityCustomerCreateSerializer, PriorityCustomerSerializer,
    PriorityCustomerUpdateSerializer
)
from ..services import PriorityCustomerService


def _parse_bool(value):
    if value is None or value == '':
        return None
    return str(value).lower() in ('1', 'true', 'yes')


class PriorityCustomerListView(APIView):
    """List or add priority customers"""
    permission_classes = [IsAdminUser]

    def get(self, request):
        tier = None
        tier_name = request.query_params.get('tier')
        if tier_name:
            tier = MembershipTier.objects.filter(name=tier_name).first()
            if tier is None:
                return error_response('Unknown tier', {'tier': [tier_name]})

        records = PriorityCustomerService.search(
            search=request.query_params.get('search'),
            tier=tier,
            is_active=_parse_bool(request.query_params.get('is_active')),
        )
        return paginated_response(records, PriorityCustomerSerializer, request)

    def post(self, request):
        serializer = PriorityCustomerCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Invalid input', serializer.errors)

        data = serializer.validated_data
        customer = Customer.objects.resolve(data['customer_id'])
        if customer is None:
            raise NotFoundError("Customer not found", customer_id=data['customer_id'])

        record = PriorityCustomerService.create(
            customer=customer,
            tier=data['tier'],
            reason=data['reason'],
            added_by=request.user,
        )
        return success_response(
            PriorityCustomerSerializer(record).data,
            'Priority customer added successfully',
            status.HTTP_201_CREATED,
        )


class PriorityCustomerDetailView(APIView):
    """Retrieve, update or deactivate one priority customer record"""
    permission_classes = [IsAdminUser]

    def get_object(self, pk):
        record = PriorityCustomer.objects.select_related(
            'customer', 'customer__tier', 'tier', 'added_by'
        ).filter(pk=pk).first()
        if record is None:
            raise NotFoundError("Priority customer not found", priority_customer_id=pk)
        return record

    def get(self, request, pk):
        return success_response(PriorityCustomerSerializer(self.get_object(pk)).data)

    def patch(self, request, pk):
        record = self.get_object(pk)
        serializer = PriorityCustomerUpdateSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response('Invalid input', serializer.errors)

        data = serializer.validated_data
        record = PriorityCustomerService.update(
            record,
            tier=data.get('tier'),
            reason=data.get('reason'),
            is_active=data.get('is_active'),
        )
        return success_response(PriorityCustomerSerializer(record).data, 'Priority customer updated successfully')

    def delete(self, request, pk):
        record = PriorityCustomerService.deactivate(self.get_object(pk))
        return success_response(PriorityCustomerSerializer(record).data, 'Priority customer removed successfully')
