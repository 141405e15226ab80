from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from . import views

urlpatterns = [
    path('register/', views.register_view, name='register'),
    path('login/', views.login_view, name='login'),
    path('token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('family/status/', views.family_status_view, name='family_status'),
    path('family/invite/', views.family_invite_view, name='family_invite'),
    path('family/invitations/<int:invitation_id>/accept/', views.family_accept_view, name='family_accept'),
    path('family/invitations/<int:invitation_id>/reject/', views.family_reject_view, name='family_reject'),
    path('family/invitations/<int:invitation_id>/', views.family_cancel_invitation_view, name='family_cancel_invitation'),
    path('family/link/', views.family_delete_link_view, name='family_delete_link'),
]
