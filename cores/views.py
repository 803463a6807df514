import logging

from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import AuditLog, PlatformSetting
from .permissions import IsPlatformAdmin
from .serializers import AuditLogSerializer, PlatformSettingSerializer

logger = logging.getLogger(__name__)


class PlatformSettingView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request):
        settings = PlatformSetting.load()
        serializer = PlatformSettingSerializer(settings)
        return Response(serializer.data)

    def put(self, request):
        settings = PlatformSetting.load()
        serializer = PlatformSettingSerializer(settings, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            AuditLog.record(
                request.user, 'SETTINGS', settings,
                details='Updated platform configuration variables',
            )
            logger.info("Platform settings updated by %s: %s", request.user, sorted(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class AuditLogListView(generics.ListAPIView):
    """Audit trail, filterable by action and by the record it touched."""
    queryset = AuditLog.objects.select_related('actor').order_by('-timestamp')
    serializer_class = AuditLogSerializer
    permission_classes = [IsPlatformAdmin]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if params.get('action'):
            queryset = queryset.filter(action=params['action'].upper())
        if params.get('target_model'):
            queryset = queryset.filter(target_model=params['target_model'])
            if params.get('target_id'):
                queryset = queryset.filter(target_object_id=params['target_id'])
        return queryset
