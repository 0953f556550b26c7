from rest_framework import serializers

from members.models import Instructor
from payments.models import Payment, InstructorPayout


class PaymentSerializer(serializers.ModelSerializer):
    """
    Serializer for Payment model.
    Class name and price are snapshotted on create; the payment date
    defaults to the effective date in the view.
    """
    member_name = serializers.CharField(source='member.full_name', read_only=True)
    payment_method_display = serializers.CharField(source='get_payment_method_display', read_only=True)
    payment_date = serializers.DateField(required=False)

    class Meta:
        model = Payment
        fields = [
            'id',
            'member',
            'member_name',
            'dance_class',
            'enrollment',
            'amount',
            'months_count',
            'payment_date',
            'period_start',
            'period_end',
            'payment_method',
            'payment_method_display',
            'snapshot_price',
            'snapshot_class_name',
            'description',
            'created_at',
        ]
        read_only_fields = [
            'snapshot_price',
            'snapshot_class_name',
            'created_at',
        ]

    def validate(self, attrs):
        enrollment = attrs.get('enrollment')
        member = attrs.get('member')
        dance_class = attrs.get('dance_class')

        if enrollment:
            if member and enrollment.member_id != member.id:
                raise serializers.ValidationError({
                    'enrollment': 'Enrollment belongs to a different member.'
                })
            if dance_class and enrollment.dance_class_id != dance_class.id:
                raise serializers.ValidationError({
                    'enrollment': 'Enrollment is for a different class.'
                })
            attrs['dance_class'] = enrollment.dance_class

        return attrs


class PayableLedgerSerializer(serializers.Serializer):
    instructor_id = serializers.IntegerField(source='instructor.id')
    instructor_name = serializers.CharField(source='instructor.full_name')
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    entry_count = serializers.IntegerField()


class InstructorPayoutSerializer(serializers.ModelSerializer):
    instructor_name = serializers.CharField(source='instructor.full_name', read_only=True)

    class Meta:
        model = InstructorPayout
        fields = ['id', 'instructor', 'instructor_name', 'amount', 'payment_date', 'note', 'created_at']
        read_only_fields = fields


class CreatePayoutSerializer(serializers.Serializer):
    """
    Serializer for paying an instructor.
    """
    instructor_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    note = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_instructor_id(self, value):
        if not Instructor.objects.filter(id=value).exists():
            raise serializers.ValidationError("Instructor not found")
        return value
