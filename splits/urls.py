from django.urls import path
from . import views

urlpatterns = [
    path('api/identity/', views.identity, name='identity'),
    path('api/receipts/', views.create_receipt, name='create_receipt'),
    path('api/receipts/extract/', views.extract_receipt, name='extract_receipt'),
    path('api/receipts/<uuid:receipt_id>/', views.receipt_detail, name='receipt_detail'),
    path('api/sessions/', views.create_session, name='create_session'),
    path('api/sessions/code/<str:code>/', views.session_by_code, name='session_by_code'),
    path('api/sessions/code/<str:code>/join/', views.join_by_code, name='join_by_code'),
    path('api/sessions/<uuid:session_id>/', views.session_detail, name='session_detail'),
    path('api/sessions/<uuid:session_id>/join/', views.join_session, name='join_session'),
    path('api/sessions/<uuid:session_id>/participants/', views.participants, name='participants'),
    path('api/sessions/<uuid:session_id>/claims/', views.claims, name='claims'),
    path('api/sessions/<uuid:session_id>/claims/<int:item_index>/', views.claim_item, name='claim_item'),
    path('api/sessions/<uuid:session_id>/claims/<int:item_index>/toggle/', views.toggle_claim, name='toggle_claim'),
    path('api/sessions/<uuid:session_id>/status/', views.session_status, name='session_status'),
    path('api/sessions/<uuid:session_id>/changes/', views.session_changes, name='session_changes'),
]
