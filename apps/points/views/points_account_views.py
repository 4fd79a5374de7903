"""
Customer points account views: balance, transaction log and ledger.
"""
from datetime import timedelta

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser

from apps.common.exceptions import NotFoundError
from apps.common.utils import paginated_response, parse_moment, success_response
from apps.customers.models import Customer

from ..models import PointsLedgerEntry, PointsTransaction
from ..serializers import PointsLedgerEntrySerializer, PointsTransactionSerializer
from ..services import LedgerService, TransactionLog

DEFAULT_SUMMARY_DAYS = 30


def _get_customer(customer_id):
    customer = Customer.objects.resolve(customer_id)
    if customer is None:
        raise NotFoundError("Customer not found", customer_id=customer_id)
    return customer


@api_view(['GET'])
@permission_classes([IsAdminUser])
def get_customer_balance(request, customer_id):
    """
    Balance as of a moment, with an activity summary and a consistency check.

    Query params: ``as_of`` (default now) and ``start`` (default 30 days
    before ``as_of``) bound the activity summary.
    """
    customer = _get_customer(customer_id)
    now = timezone.now()
    as_of = parse_moment(request.query_params.get('as_of'), end_of_day=True, default=now)
    start = parse_moment(
        request.query_params.get('start'), default=as_of - timedelta(days=DEFAULT_SUMMARY_DAYS)
    )

    check = TransactionLog.check_balance(customer, now)
    return success_response({
        'customer_id': customer.customer_id,
        'tier': customer.tier.display_name if customer.tier else None,
        'total_points': customer.total_points,
        'coins': customer.coins,
        'as_of': as_of,
        'balance_as_of': TransactionLog.aggregate_balance(customer, as_of),
        'available_points': LedgerService.available_points(customer, as_of),
        'activity': TransactionLog.activity_summary(customer, start, as_of),
        'consistency': {
            'cached_balance': check.cached_balance,
            'log_balance': check.log_balance,
            'drift': check.drift,
            'is_consistent': check.is_consistent,
        },
    })


@api_view(['GET'])
@permission_classes([IsAdminUser])
def get_customer_transactions(request, customer_id):
    """Transaction log for a customer, newest first; filter with ``type``"""
    customer = _get_customer(customer_id)
    transactions = PointsTransaction.objects.filter(customer=customer).select_related(
        'point_criteria', 'app_type'
    ).order_by('-transaction_date', '-id')

    transaction_type = request.query_params.get('type')
    if transaction_type:
        transactions = transactions.filter(transaction_type=transaction_type)

    return paginated_response(transactions, PointsTransactionSerializer, request)


@api_view(['GET'])
@permission_classes([IsAdminUser])
def get_customer_ledger(request, customer_id):
    """Ledger entries for a customer in FIFO order; filter with ``status``"""
    customer = _get_customer(customer_id)
    entries = PointsLedgerEntry.objects.filter(customer=customer).select_related(
        'transaction'
    ).order_by('earned_at', 'id')

    entry_status = request.query_params.get('status')
    if entry_status:
        entries = entries.filter(status=entry_status)

    return paginated_response(entries, PointsLedgerEntrySerializer, request)
