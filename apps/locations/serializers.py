"""Serializers for rental sites."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Box, BoxModel, Location, Stand


class BoxSerializer(serializers.ModelSerializer):
    location_id = serializers.ReadOnlyField(source="stand.location_id")

    class Meta:
        model = Box
        fields = ["id", "display_code", "stand", "location_id", "model", "status", "price_per_day", "deposit"]
        read_only_fields = fields


class StandSerializer(serializers.ModelSerializer):
    boxes = BoxSerializer(many=True, read_only=True)

    class Meta:
        model = Stand
        fields = ["id", "display_code", "name", "boxes"]
        read_only_fields = fields


class LocationSerializer(serializers.ModelSerializer):
    stands = StandSerializer(many=True, read_only=True)

    class Meta:
        model = Location
        fields = ["id", "display_code", "name", "address", "stands"]
        read_only_fields = fields


class ModelQuerySerializer(serializers.Serializer):
    model = serializers.ChoiceField(choices=BoxModel.choices)


class RangeQuerySerializer(serializers.Serializer):
    """Optional ``start``/``end`` query parameters: ISO dates or datetimes."""

    start = serializers.CharField(required=False, allow_blank=True, default="")
    end = serializers.CharField(required=False, allow_blank=True, default="")
