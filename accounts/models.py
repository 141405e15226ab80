import secrets
from datetime import timedelta

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone

INVITATION_LIFETIME = timedelta(days=7)


class User(AbstractUser):
    """Custom User model"""
    email = models.EmailField(unique=True)
    username = models.CharField(max_length=150, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def __str__(self):
        return self.email


class FamilyLink(models.Model):
    """Lien famille entre deux comptes (partage des menus)"""
    user1 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='family_links_as_user1',
        verbose_name='Utilisateur 1'
    )
    user2 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='family_links_as_user2',
        verbose_name='Utilisateur 2'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Lien famille'
        verbose_name_plural = 'Liens famille'

    def __str__(self):
        return f"{self.user1.email} <-> {self.user2.email}"

    def other_user_id(self, user_id):
        return self.user2_id if self.user1_id == user_id else self.user1_id


def generate_invitation_token():
    return secrets.token_urlsafe(32)


def default_invitation_expiry():
    return timezone.now() + INVITATION_LIFETIME


class FamilyLinkInvitation(models.Model):
    """Invitation à rejoindre le lien famille d'un utilisateur"""
    inviter = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_family_invitations',
        verbose_name='Inviteur'
    )
    invited_email = models.EmailField(verbose_name='Email invité')
    invited_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='received_family_invitations',
        blank=True,
        null=True,
        verbose_name='Invité'
    )
    token = models.CharField(max_length=64, unique=True, default=generate_invitation_token)
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(default=default_invitation_expiry)
    accepted_at = models.DateTimeField(blank=True, null=True)
    rejected_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = 'Invitation famille'
        verbose_name_plural = 'Invitations famille'

    def __str__(self):
        return f"{self.inviter.email} -> {self.invited_email}"

    @property
    def is_active(self):
        return (
            self.accepted_at is None
            and self.rejected_at is None
            and self.cancelled_at is None
            and self.expires_at > timezone.now()
        )
