from django.conf import settings
from rest_framework import serializers


class MessageSendSerializer(serializers.Serializer):
    recipientId = serializers.IntegerField(min_value=1)
    content = serializers.CharField(max_length=settings.MESSAGE_MAX_LENGTH)


class ThreadQuerySerializer(serializers.Serializer):
    peerId = serializers.IntegerField(min_value=1)
    sinceId = serializers.IntegerField(min_value=0, required=False)
