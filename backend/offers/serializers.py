"""
Serializers for the offer comparison API.

Request serializers only check payload shape; numeric rules (col index > 0,
financial weight range, unknown offer ids) are enforced by the engine so the
error names the offending offer and field.
"""

from rest_framework import serializers

from offers.compensation import clamp_non_negative, normalize_work_mode
from offers.models import JobOffer, SavedOfferComparison


class JobOfferSerializer(serializers.ModelSerializer):
    job_id = serializers.SerializerMethodField()

    class Meta:
        model = JobOffer
        fields = [
            'id', 'job_id', 'company_name', 'role_title', 'location', 'work_mode',
            'base_salary', 'bonus', 'equity', 'benefits_value', 'cost_of_living_index',
            'is_archived', 'archived_reason', 'archived_at', 'notes',
            'created_at', 'updated_at',
        ]

    def get_job_id(self, obj):
        return str(obj.id)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for key in ('base_salary', 'bonus', 'equity', 'benefits_value', 'cost_of_living_index'):
            if data.get(key) is not None:
                data[key] = float(data[key])
        return data


class JobOfferCompUpdateSerializer(serializers.Serializer):
    base_salary = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    bonus = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    equity = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    benefits_value = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    cost_of_living_index = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)
    location = serializers.CharField(max_length=200, required=False, allow_blank=True)
    work_mode = serializers.CharField(max_length=40, required=False, allow_blank=True)

    def validate_cost_of_living_index(self, value):
        if value <= 0:
            raise serializers.ValidationError('Cost-of-living index must be greater than 0.')
        return value

    def validate_work_mode(self, value):
        return normalize_work_mode(value)

    def validate(self, attrs):
        # Stored amounts follow the engine clamp policy, including its warning.
        job_id = str(self.instance.pk) if self.instance is not None else None
        for key in ('base_salary', 'bonus', 'equity', 'benefits_value'):
            if attrs.get(key) is not None:
                attrs[key] = clamp_non_negative(attrs[key], key, job_id)
        return attrs

    def update(self, instance, validated_data):
        for key, value in validated_data.items():
            setattr(instance, key, value)
        instance.save()
        return instance


class JobOfferArchiveSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=120, required=False, allow_blank=True, default='declined')


class CompareRequestSerializer(serializers.Serializer):
    job_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    baseline_col_index = serializers.FloatField(required=False)
    col_index_by_job_id = serializers.DictField(required=False)
    scenario_by_job_id = serializers.DictField(child=serializers.DictField(), required=False)
    ratings_by_job_id = serializers.DictField(child=serializers.DictField(), required=False)
    weights = serializers.DictField(required=False)
    include_narrative = serializers.BooleanField(required=False, default=False)

    def options(self):
        data = self.validated_data
        return {
            key: data[key]
            for key in ('baseline_col_index', 'col_index_by_job_id', 'scenario_by_job_id', 'ratings_by_job_id', 'weights')
            if key in data
        }


class CareerProjectionRequestSerializer(serializers.Serializer):
    job_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    inputs = serializers.DictField(required=False, default=dict)


class SavedOfferComparisonSerializer(serializers.ModelSerializer):
    class Meta:
        model = SavedOfferComparison
        fields = ['id', 'name', 'job_ids', 'inputs', 'result', 'created_at', 'updated_at']
        read_only_fields = ['id', 'result', 'created_at', 'updated_at']

    def validate_job_ids(self, value):
        if not isinstance(value, list) or len(value) < 2:
            raise serializers.ValidationError('Select at least two offers to save a comparison.')
        return [str(item) for item in value]

    def validate_inputs(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Inputs must be an object.')
        return value


class SavedOfferComparisonListSerializer(serializers.ModelSerializer):
    class Meta:
        model = SavedOfferComparison
        fields = ['id', 'name', 'job_ids', 'created_at', 'updated_at']
