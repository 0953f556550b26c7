from rest_framework import serializers
from classes.models import DanceClass, Enrollment


class DanceClassSerializer(serializers.ModelSerializer):
    day_display = serializers.CharField(source='get_day_of_week_display', read_only=True)
    instructor_name = serializers.CharField(source='instructor.full_name', read_only=True)
    dance_type_name = serializers.CharField(source='dance_type.name', read_only=True)
    active_enrollments_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = DanceClass
        fields = [
            'id', 'name', 'instructor', 'instructor_name',
            'dance_type', 'dance_type_name',
            'day_of_week', 'day_display', 'start_time', 'duration_minutes',
            'price_monthly', 'active', 'archived', 'active_enrollments_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_instructor(self, value):
        if value and not value.active:
            raise serializers.ValidationError('Selected instructor is not active.')
        return value

    def validate(self, attrs):
        archived = attrs.get('archived', self.instance.archived if self.instance else False)
        active = attrs.get('active', self.instance.active if self.instance else True)
        if archived and active:
            raise serializers.ValidationError({
                'active': 'An archived class cannot be active.'
            })
        return attrs


class EnrollmentSerializer(serializers.ModelSerializer):
    member_name = serializers.CharField(source='member.full_name', read_only=True)
    class_name = serializers.CharField(source='dance_class.name', read_only=True)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    is_overdue = serializers.SerializerMethodField()
    days_until_payment = serializers.SerializerMethodField()

    class Meta:
        model = Enrollment
        fields = [
            'id', 'member', 'member_name', 'dance_class', 'class_name',
            'active', 'price', 'custom_price', 'effective_price',
            'payment_interval', 'next_payment_date',
            'is_overdue', 'days_until_payment', 'created_at'
        ]
        read_only_fields = ['id', 'price', 'created_at']

    def get_is_overdue(self, obj):
        today = self.context.get('today')
        return obj.is_overdue(today) if today else False

    def get_days_until_payment(self, obj):
        today = self.context.get('today')
        return obj.days_until_payment(today) if today else None

    def validate(self, attrs):
        member = attrs.get('member')
        dance_class = attrs.get('dance_class')
        if member and dance_class and Enrollment._default_manager.filter(
            member=member, dance_class=dance_class, active=True
        ).exists():
            raise serializers.ValidationError({
                'dance_class': 'Member is already enrolled in this class.'
            })
        return attrs
