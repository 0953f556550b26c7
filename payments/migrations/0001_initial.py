import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('classes', '0001_initial'),
        ('members', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0.01)], verbose_name='Amount')),
                ('months_count', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='Months Covered')),
                ('payment_date', models.DateField(verbose_name='Payment Date')),
                ('period_start', models.DateField(blank=True, null=True, verbose_name='Period Start')),
                ('period_end', models.DateField(blank=True, null=True, verbose_name='Period End')),
                ('payment_method', models.CharField(blank=True, choices=[('cash', 'Cash'), ('card', 'Credit Card'), ('transfer', 'Bank Transfer')], max_length=20, null=True, verbose_name='Payment Method')),
                ('snapshot_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Class Price (snapshot)')),
                ('snapshot_class_name', models.CharField(blank=True, max_length=255, null=True, verbose_name='Class Name (snapshot)')),
                ('description', models.TextField(blank=True, null=True, verbose_name='Description')),
                ('dance_class', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='classes.danceclass', verbose_name='Class')),
                ('enrollment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='classes.enrollment', verbose_name='Enrollment')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payments', to='members.member', verbose_name='Member')),
            ],
            options={
                'verbose_name': 'Payment',
                'verbose_name_plural': 'Payments',
                'db_table': 'payments',
                'ordering': ['-payment_date', '-id'],
                'indexes': [
                    models.Index(fields=['member', 'payment_date'], name='payments_member_date_idx'),
                    models.Index(fields=['payment_date'], name='payments_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='InstructorLedger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Amount')),
                ('due_date', models.DateField(verbose_name='Due Date')),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('payable', 'Payable'), ('paid', 'Paid')], default='pending', max_length=20, verbose_name='Status')),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='members.instructor', verbose_name='Instructor')),
                ('student_payment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='ledger_entries', to='payments.payment', verbose_name='Student Payment')),
            ],
            options={
                'verbose_name': 'Ledger Entry',
                'verbose_name_plural': 'Instructor Ledger',
                'db_table': 'instructor_ledger',
                'ordering': ['due_date', 'id'],
                'indexes': [models.Index(fields=['instructor', 'status', 'due_date'], name='ledger_instructor_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='InstructorPayout',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[django.core.validators.MinValueValidator(0.01)], verbose_name='Amount')),
                ('payment_date', models.DateField(verbose_name='Payment Date')),
                ('note', models.CharField(blank=True, max_length=255, null=True, verbose_name='Note')),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='payouts', to='members.instructor', verbose_name='Instructor')),
            ],
            options={
                'verbose_name': 'Instructor Payout',
                'verbose_name_plural': 'Instructor Payouts',
                'db_table': 'instructor_payouts',
                'ordering': ['-payment_date', '-id'],
            },
        ),
    ]
