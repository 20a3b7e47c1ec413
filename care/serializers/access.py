from rest_framework import serializers

from care.models import AccessRequest, User
from care.serializers import strip_html


class AccessRequestCreateSerializer(serializers.Serializer):
    requestedRole = serializers.ChoiceField(choices=[r for r, _ in AccessRequest.REQUESTABLE_ROLES])
    reason = serializers.CharField(max_length=1000)

    def validate_reason(self, v):
        v = strip_html(v)
        if not v:
            raise serializers.ValidationError('please tell us why you need access')
        return v


class AccessDecisionSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    role = serializers.ChoiceField(choices=[r for r, _ in AccessRequest.REQUESTABLE_ROLES], required=False)


class RoleUpdateSerializer(serializers.Serializer):
    userId = serializers.IntegerField(min_value=1)
    role = serializers.ChoiceField(choices=[r for r, _ in User.ROLE_CHOICES])


class DoctorReviewSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    message = serializers.CharField(max_length=2000, allow_blank=True)

    def validate_message(self, v):
        return strip_html(v)
