import logging

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken

from menus.services.cache import invalidate_family_caches
from .models import FamilyLink, FamilyLinkInvitation, User
from .serializers import (
    FamilyInviteSerializer,
    FamilyLinkInvitationSerializer,
    FamilyLinkSerializer,
    LoginSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def _tokens_for(user):
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }


def _get_family_link(user):
    return FamilyLink.objects.select_related('user1', 'user2').filter(
        Q(user1=user) | Q(user2=user)
    ).first()


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Register a new user"""
    serializer = UserRegistrationSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        return Response({
            'message': 'Utilisateur créé avec succès',
            'user': UserSerializer(user).data,
            'tokens': _tokens_for(user),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Login user and return JWT tokens"""
    serializer = LoginSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        user = serializer.validated_data['user']
        return Response({
            'message': 'Connexion réussie',
            'user': UserSerializer(user).data,
            'tokens': _tokens_for(user),
        }, status=status.HTTP_200_OK)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def family_status_view(request):
    """Lien famille courant et invitations en attente (envoyées et reçues)"""
    link = _get_family_link(request.user)
    sent = [
        invitation for invitation in FamilyLinkInvitation.objects.select_related('inviter').filter(
            inviter=request.user
        )
        if invitation.is_active
    ]
    received = [
        invitation for invitation in FamilyLinkInvitation.objects.select_related('inviter').filter(
            Q(invited_user=request.user) | Q(invited_email__iexact=request.user.email)
        )
        if invitation.is_active
    ]
    return Response({
        'has_family_link': link is not None,
        'link': FamilyLinkSerializer(link).data if link else None,
        'sent_invitations': FamilyLinkInvitationSerializer(sent, many=True).data,
        'received_invitations': FamilyLinkInvitationSerializer(received, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def family_invite_view(request):
    """Inviter un autre compte (par email) à rejoindre le lien famille"""
    serializer = FamilyInviteSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    email = serializer.validated_data['email']

    if email.lower() == request.user.email.lower():
        return Response({'error': 'Vous ne pouvez pas vous inviter vous-même'}, status=status.HTTP_400_BAD_REQUEST)
    if _get_family_link(request.user) is not None:
        return Response({'error': 'Vous avez déjà un lien famille'}, status=status.HTTP_400_BAD_REQUEST)

    invited_user = User.objects.filter(email__iexact=email).first()
    invitation = FamilyLinkInvitation.objects.create(
        inviter=request.user,
        invited_email=email,
        invited_user=invited_user,
    )
    logger.info("[FamilyLink] Invitation %s envoyée par user=%s", invitation.id, request.user.id)
    return Response(FamilyLinkInvitationSerializer(invitation).data, status=status.HTTP_201_CREATED)


def _get_received_invitation(user, invitation_id):
    invitation = get_object_or_404(
        FamilyLinkInvitation.objects.select_related('inviter'),
        Q(invited_user=user) | Q(invited_email__iexact=user.email),
        id=invitation_id,
    )
    return invitation


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def family_accept_view(request, invitation_id):
    """Accepter une invitation : crée le lien et invalide les caches des deux comptes"""
    invitation = _get_received_invitation(request.user, invitation_id)
    if not invitation.is_active:
        return Response({'error': "Cette invitation n'est plus valide"}, status=status.HTTP_400_BAD_REQUEST)
    if _get_family_link(request.user) is not None or _get_family_link(invitation.inviter) is not None:
        return Response({'error': 'Un des deux comptes a déjà un lien famille'}, status=status.HTTP_400_BAD_REQUEST)

    with transaction.atomic():
        link = FamilyLink.objects.create(user1=invitation.inviter, user2=request.user)
        invitation.accepted_at = timezone.now()
        invitation.invited_user = request.user
        invitation.save(update_fields=['accepted_at', 'invited_user'])

    invalidate_family_caches(invitation.inviter_id, request.user.id)
    logger.info("[FamilyLink] Lien %s créé entre user=%s et user=%s", link.id, invitation.inviter_id, request.user.id)
    return Response(FamilyLinkSerializer(link).data, status=status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def family_reject_view(request, invitation_id):
    invitation = _get_received_invitation(request.user, invitation_id)
    if not invitation.is_active:
        return Response({'error': "Cette invitation n'est plus valide"}, status=status.HTTP_400_BAD_REQUEST)
    invitation.rejected_at = timezone.now()
    invitation.save(update_fields=['rejected_at'])
    return Response(FamilyLinkInvitationSerializer(invitation).data, status=status.HTTP_200_OK)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def family_cancel_invitation_view(request, invitation_id):
    invitation = get_object_or_404(FamilyLinkInvitation, id=invitation_id, inviter=request.user)
    if not invitation.is_active:
        return Response({'error': "Cette invitation n'est plus valide"}, status=status.HTTP_400_BAD_REQUEST)
    invitation.cancelled_at = timezone.now()
    invitation.save(update_fields=['cancelled_at'])
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def family_delete_link_view(request):
    """Supprimer le lien famille (les deux comptes perdent l'accès croisé)"""
    link = _get_family_link(request.user)
    if link is None:
        return Response({'error': 'Aucun lien famille'}, status=status.HTTP_404_NOT_FOUND)

    user1_id, user2_id = link.user1_id, link.user2_id
    link.delete()
    invalidate_family_caches(user1_id, user2_id)
    logger.info("[FamilyLink] Lien supprimé entre user=%s et user=%s", user1_id, user2_id)
    return Response(status=status.HTTP_204_NO_CONTENT)
