from django.urls import path
from . import views

app_name = 'points'

urlpatterns = [
    # Manual adjustments
    path('manual/add-individual/', views.add_individual_points, name='manual_add_individual'),
    path('manual/add-bulk/', views.add_bulk_points, name='manual_add_bulk'),
    path('manual/reduce/', views.reduce_points, name='manual_reduce'),

    # Customer accounts
    path('customers/<str:customer_id>/balance/', views.get_customer_balance, name='customer_balance'),
    path('customers/<str:customer_id>/transactions/', views.get_customer_transactions, name='customer_transactions'),
    path('customers/<str:customer_id>/ledger/', views.get_customer_ledger, name='customer_ledger'),

    # Scheduled processing
    path('process/', views.process_points_and_tiers, name='process'),
]
