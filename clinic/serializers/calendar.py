from rest_framework import serializers

from clinic.services.calendar import is_past


class CalendarQuerySerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1900, max_value=2999)
    month = serializers.IntegerField(min_value=1, max_value=12)


class TimeSlotQuerySerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(min_value=1)
    date = serializers.DateField()

    def validate_date(self, v):
        if is_past(v):
            raise serializers.ValidationError('Cannot book a date in the past')
        return v
