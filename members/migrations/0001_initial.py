import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Instructor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('first_name', models.CharField(max_length=100, verbose_name='First Name')),
                ('last_name', models.CharField(max_length=100, verbose_name='Last Name')),
                ('specialty', models.CharField(blank=True, help_text='Dance styles taught (e.g., Salsa & Bachata)', max_length=255, null=True, verbose_name='Specialty')),
                ('phone', models.CharField(blank=True, max_length=17, null=True, validators=[django.core.validators.RegexValidator(message="Phone number must contain 7 to 15 digits, optionally prefixed with '+'.", regex='^\\+?\\d{7,15}$')], verbose_name='Phone Number')),
                ('active', models.BooleanField(default=True, verbose_name='Active')),
                ('default_commission_rate', models.DecimalField(blank=True, decimal_places=2, help_text='Percentage of student payments owed to the instructor when no dance-type rate exists', max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name='Default Commission Rate')),
            ],
            options={
                'verbose_name': 'Instructor',
                'verbose_name_plural': 'Instructors',
                'db_table': 'instructors',
                'ordering': ['first_name', 'last_name'],
            },
        ),
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('first_name', models.CharField(max_length=100, verbose_name='First Name')),
                ('last_name', models.CharField(max_length=100, verbose_name='Last Name')),
                ('phone', models.CharField(blank=True, max_length=17, null=True, validators=[django.core.validators.RegexValidator(message="Phone number must contain 7 to 15 digits, optionally prefixed with '+'.", regex='^\\+?\\d{7,15}$')], verbose_name='Phone Number')),
                ('join_date', models.DateField(verbose_name='Join Date')),
                ('status', models.CharField(choices=[('active', 'Active'), ('frozen', 'Frozen'), ('archived', 'Archived')], default='active', max_length=20, verbose_name='Status')),
                ('notes', models.TextField(blank=True, null=True, verbose_name='Notes')),
            ],
            options={
                'verbose_name': 'Member',
                'verbose_name_plural': 'Members',
                'db_table': 'members',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['status'], name='members_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='FrozenLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('start_date', models.DateField(verbose_name='Start Date')),
                ('end_date', models.DateField(blank=True, help_text='Leave empty for an indefinite freeze', null=True, verbose_name='End Date')),
                ('reason', models.CharField(blank=True, max_length=255, null=True, verbose_name='Reason')),
                ('days_count', models.PositiveIntegerField(blank=True, null=True, verbose_name='Days')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='frozen_logs', to='members.member', verbose_name='Member')),
            ],
            options={
                'verbose_name': 'Freeze',
                'verbose_name_plural': 'Freezes',
                'db_table': 'frozen_logs',
                'ordering': ['-start_date'],
            },
        ),
    ]
