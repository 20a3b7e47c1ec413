from rest_framework import serializers


class VitalsSerializer(serializers.Serializer):
    bp = serializers.CharField(max_length=16, required=False, allow_blank=True)
    sugar = serializers.FloatField(required=False, allow_null=True)
    weight = serializers.FloatField(required=False, allow_null=True)


class ReportRequestSerializer(serializers.Serializer):
    patientName = serializers.CharField(max_length=120)
    vitals = VitalsSerializer()
    symptoms = serializers.CharField(max_length=2000, required=False, allow_blank=True)
