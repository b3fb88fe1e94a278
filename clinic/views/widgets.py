"""
JSON endpoints behind the calendar and dispense screens.

Errors use the ``{ok: false, error: {code, message}}`` envelope from
:func:`clinic.exceptions.api_exception_handler`.
"""
from drf_yasg.utils import swagger_auto_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from clinic.permissions import HasPortalPermission
from clinic.serializers.calendar import CalendarQuerySerializer, TimeSlotQuerySerializer
from clinic.serializers.pharmacy import DispenseQuoteSerializer
from clinic.services.api import rows
from clinic.services.calendar import local_today, month_context
from clinic.services.pharmacy import DispenseLine, dispense_total, stock_warning, validate_line


def _invalid(serializer):
    return Response({'ok': False, 'error': {'code': 'invalid_params', 'message': serializer.errors}},
                    status=status.HTTP_400_BAD_REQUEST)


@swagger_auto_schema(method='get', query_serializer=CalendarQuerySerializer)
@api_view(['GET'])
@permission_classes([AllowAny])
def calendar_month(request):
    """Sunday-first month grid; past days are flagged and cannot be picked."""
    s = CalendarQuerySerializer(data=request.query_params)
    if not s.is_valid():
        return _invalid(s)
    data = month_context(s.validated_data['year'], s.validated_data['month'], local_today())
    return Response({'ok': True, 'data': data})


class TimeSlotsView(APIView):
    """Available booking slots for a doctor on a day (today or later)."""
    permission_classes = [AllowAny]
    throttle_scope = 'time_slots'

    @swagger_auto_schema(query_serializer=TimeSlotQuerySerializer)
    def get(self, request):
        s = TimeSlotQuerySerializer(data=request.query_params)
        if not s.is_valid():
            return _invalid(s)
        resp = request._request.public_api.get_available_time_slots(
            s.validated_data['doctor_id'], s.validated_data['date'].isoformat())
        return Response({'ok': True, 'data': rows(resp)})


class DispenseQuoteView(APIView):
    """Price a dispense batch without submitting it."""
    permission_classes = [HasPortalPermission]
    required_permission = 'view-pharmacy'

    @swagger_auto_schema(request_body=DispenseQuoteSerializer)
    def post(self, request):
        s = DispenseQuoteSerializer(data=request.data)
        if not s.is_valid():
            return _invalid(s)
        lines = [DispenseLine.from_dict(item) for item in s.validated_data['lines']]
        quoted = []
        for line in lines:
            price = line.unit_price
            quoted.append({
                'prescription_item_id': line.prescription_item_id,
                'disposition': line.disposition,
                'quantity': line.quantity,
                'unit_price': str(price) if price is not None else None,
                'total': str(line.total),
                'submittable': line.is_submittable,
                'errors': validate_line(line) if line.is_submittable else {},
                'warning': stock_warning(line),
            })
        return Response({'ok': True, 'data': {'lines': quoted, 'total': str(dispense_total(lines))}})
