from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsClinician
from ..serializers.report import ReportRequestSerializer
from ..services.report import generate_report


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinician])
def generate(request):
    """Build a clinical summary and a rule-based assessment from vitals."""
    s = ReportRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    result = generate_report(v['patientName'], dict(v['vitals']), v.get('symptoms', ''))
    return Response({'ok': True, **result})
