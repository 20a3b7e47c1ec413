from django.contrib.auth import get_user_model
from rest_framework import serializers

from care.serializers import strip_html

User = get_user_model()


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField(required=False, allow_blank=True)
    username = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('password is required')
        return v

    def validate(self, attrs):
        login = (attrs.get('email') or attrs.get('username') or '').strip()
        if not login:
            raise serializers.ValidationError({'email': 'email is required'})
        attrs['login'] = login.lower() if '@' in login else login
        return attrs


class SignupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=120)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    age = serializers.IntegerField(min_value=0, max_value=130, required=False, allow_null=True)
    village = serializers.CharField(max_length=120, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)

    def validate_name(self, v):
        v = strip_html(v)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_email(self, v):
        v = v.strip().lower()
        if User.objects.filter(email__iexact=v).exists():
            raise serializers.ValidationError('an account with this email already exists')
        return v

    def validate_village(self, v):
        return strip_html(v)

    def validate_phone(self, v):
        v = (v or '').strip()
        if v and not v.startswith('+'):
            raise serializers.ValidationError('phone must include country code (e.g. +91)')
        return v


class ForgotPasswordSerializer(serializers.Serializer):
    email = serializers.EmailField()


class ResetPasswordSerializer(serializers.Serializer):
    uid = serializers.CharField()
    token = serializers.CharField()
    password = serializers.CharField(write_only=True)
