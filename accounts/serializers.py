from rest_framework import serializers
from django.contrib.auth import authenticate
from .models import User, FamilyLink, FamilyLinkInvitation


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'password')
        extra_kwargs = {
            'password': {'write_only': True},
        }

    def create(self, validated_data):
        password = validated_data.pop('password')
        user = User.objects.create_user(password=password, **validated_data)
        return user


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ('id', 'username', 'email', 'created_at')
        read_only_fields = ('id', 'created_at')


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        email = attrs.get('email')
        password = attrs.get('password')

        if email and password:
            user = authenticate(request=self.context.get('request'), username=email, password=password)
            if not user:
                raise serializers.ValidationError('Identifiants invalides.')
            if not user.is_active:
                raise serializers.ValidationError('Ce compte est désactivé.')
            attrs['user'] = user
        else:
            raise serializers.ValidationError('Email et mot de passe requis.')

        return attrs


class FamilyLinkSerializer(serializers.ModelSerializer):
    user1 = UserSerializer(read_only=True)
    user2 = UserSerializer(read_only=True)

    class Meta:
        model = FamilyLink
        fields = ['id', 'user1', 'user2', 'created_at']


class FamilyLinkInvitationSerializer(serializers.ModelSerializer):
    inviter = UserSerializer(read_only=True)
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = FamilyLinkInvitation
        fields = [
            'id', 'inviter', 'invited_email', 'created_at', 'expires_at',
            'accepted_at', 'rejected_at', 'cancelled_at', 'is_active'
        ]


class FamilyInviteSerializer(serializers.Serializer):
    email = serializers.EmailField()
