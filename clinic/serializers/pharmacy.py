from rest_framework import serializers

from clinic.services.pharmacy import DISPOSITIONS


class DispenseLineSerializer(serializers.Serializer):
    prescription_item_id = serializers.IntegerField(min_value=1)
    medicine_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    prescribed_quantity = serializers.IntegerField(required=False, min_value=0)
    disposition = serializers.ChoiceField(choices=DISPOSITIONS)
    quantity_to_dispense = serializers.IntegerField(required=False, min_value=0, default=0)
    medicine_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    selling_price = serializers.DecimalField(required=False, allow_null=True, max_digits=12, decimal_places=2)
    current_stock = serializers.IntegerField(required=False, allow_null=True)
    manual_medicine_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    manual_unit = serializers.CharField(required=False, allow_blank=True, max_length=50)
    manual_unit_price = serializers.DecimalField(required=False, allow_null=True, max_digits=12, decimal_places=2)
    alternative_name = serializers.CharField(required=False, allow_blank=True, max_length=200)
    alternative_unit_price = serializers.DecimalField(required=False, allow_null=True, max_digits=12, decimal_places=2)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=500)


class DispenseQuoteSerializer(serializers.Serializer):
    lines = DispenseLineSerializer(many=True, allow_empty=False)
