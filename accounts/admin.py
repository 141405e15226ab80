from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, FamilyLink, FamilyLinkInvitation


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'username', 'is_staff', 'created_at']
    list_filter = ['is_staff', 'is_superuser']


@admin.register(FamilyLink)
class FamilyLinkAdmin(admin.ModelAdmin):
    list_display = ['user1', 'user2', 'created_at']


@admin.register(FamilyLinkInvitation)
class FamilyLinkInvitationAdmin(admin.ModelAdmin):
    list_display = ['inviter', 'invited_email', 'created_at', 'expires_at', 'accepted_at']
