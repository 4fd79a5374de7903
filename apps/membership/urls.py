from django.urls import path
from . import views

urlpatterns = [
    path('tiers/', views.MembershipTierListView.as_view(), name='membership-tiers'),
    path('priority-customers/', views.PriorityCustomerListView.as_view(), name='priority-customer-list'),
    path(
        'priority-customers/<int:pk>/',
        views.PriorityCustomerDetailView.as_view(),
        name='priority-customer-detail',
    ),
]
