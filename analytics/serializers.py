from rest_framework import serializers


class DateRangeSerializer(serializers.Serializer):
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
    days = serializers.IntegerField(min_value=1, max_value=3660, default=30)
    period = serializers.ChoiceField(choices=["day", "month"], default="day")

    def validate(self, attrs):
        if attrs.get("date_from") and attrs.get("date_to") and attrs["date_from"] > attrs["date_to"]:
            raise serializers.ValidationError("date_from must be before date_to.")
        return attrs


class TopProductsSerializer(DateRangeSerializer):
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)
