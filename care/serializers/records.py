from django.conf import settings
from rest_framework import serializers

from care.models import MedicalRecord
from care.serializers import strip_html


class RecordInputSerializer(serializers.Serializer):
    patientId = serializers.IntegerField(min_value=1)
    bp = serializers.RegexField(r'^\d{2,3}/\d{2,3}$', max_length=16, required=False, allow_blank=True,
                                error_messages={'invalid': 'blood pressure must look like 120/80'})
    sugar = serializers.FloatField(min_value=0, max_value=1000, required=False, allow_null=True)
    weight = serializers.FloatField(min_value=0, max_value=500, required=False, allow_null=True)
    symptoms = serializers.CharField(max_length=2000, required=False, allow_blank=True)
    condition = serializers.ChoiceField(choices=[c for c, _ in MedicalRecord.CONDITION_CHOICES],
                                        default=MedicalRecord.CONDITION_STABLE)
    clientRef = serializers.UUIDField(required=False, allow_null=True)
    recordedAt = serializers.DateTimeField(required=False, allow_null=True)

    def validate_symptoms(self, v):
        return strip_html(v)


class RecordSyncItemSerializer(RecordInputSerializer):
    """A queued record; its clientRef is what makes the replay idempotent."""
    clientRef = serializers.UUIDField()


class RecordSyncSerializer(serializers.Serializer):
    """Outer shape of an offline replay batch; items are validated one by one."""
    records = serializers.ListField(child=serializers.DictField(), allow_empty=False)

    def validate_records(self, v):
        if len(v) > settings.SYNC_BATCH_MAX:
            raise serializers.ValidationError(f'at most {settings.SYNC_BATCH_MAX} records per batch')
        return v


class PatientSearchQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64)

    def validate_q(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('search text is required')
        return v
