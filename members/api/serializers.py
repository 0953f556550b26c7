from rest_framework import serializers
from members.models import Member, FrozenLog


class FrozenLogSerializer(serializers.ModelSerializer):
    member_name = serializers.CharField(source='member.full_name', read_only=True)
    is_indefinite = serializers.BooleanField(read_only=True)

    class Meta:
        model = FrozenLog
        fields = [
            'id', 'member', 'member_name', 'start_date', 'end_date',
            'days_count', 'reason', 'is_indefinite', 'created_at'
        ]
        read_only_fields = fields


class MemberSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    join_date = serializers.DateField(required=False)
    is_frozen = serializers.SerializerMethodField()
    active_enrollments_count = serializers.SerializerMethodField()

    class Meta:
        model = Member
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'phone',
            'join_date', 'status', 'status_display', 'notes',
            'is_frozen', 'active_enrollments_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def get_is_frozen(self, obj):
        # Judged against the effective date the view put in the context
        today = self.context.get('today')
        if today is None or not obj.pk:
            return False
        return obj.is_frozen_on(today)

    def get_active_enrollments_count(self, obj):
        if not obj.pk:
            return 0
        return obj.enrollments.filter(active=True).count()


class MemberCreateSerializer(MemberSerializer):
    class Meta(MemberSerializer.Meta):
        pass


class FreezeRequestSerializer(serializers.Serializer):
    start_date = serializers.DateField(required=True)
    end_date = serializers.DateField(required=True)
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate(self, attrs):
        if attrs['end_date'] <= attrs['start_date']:
            raise serializers.ValidationError({
                'end_date': 'End date must be after the start date.'
            })
        return attrs


class OverdueEnrollmentSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField(source='id')
    class_name = serializers.CharField(source='dance_class.name')
    next_payment_date = serializers.DateField()
    days_overdue = serializers.SerializerMethodField()
    amount_due = serializers.DecimalField(source='effective_price', max_digits=10, decimal_places=2)

    def get_days_overdue(self, obj):
        return -obj.days_until_payment(self.context['today'])
