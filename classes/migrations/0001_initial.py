import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('members', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='DanceType',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100, unique=True, verbose_name='Name')),
                ('slug', models.SlugField(blank=True, max_length=100, null=True, verbose_name='Slug')),
            ],
            options={
                'verbose_name': 'Dance Type',
                'verbose_name_plural': 'Dance Types',
                'db_table': 'dance_types',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='DanceClass',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('day_of_week', models.CharField(blank=True, choices=[('monday', 'Monday'), ('tuesday', 'Tuesday'), ('wednesday', 'Wednesday'), ('thursday', 'Thursday'), ('friday', 'Friday'), ('saturday', 'Saturday'), ('sunday', 'Sunday')], max_length=20, null=True, verbose_name='Day')),
                ('start_time', models.TimeField(blank=True, help_text='Weekly lesson time (e.g., 19:30)', null=True, verbose_name='Start Time')),
                ('duration_minutes', models.PositiveIntegerField(default=60, verbose_name='Duration (minutes)')),
                ('price_monthly', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(0)], verbose_name='Monthly Price')),
                ('active', models.BooleanField(default=True, verbose_name='Active')),
                ('archived', models.BooleanField(default=False, verbose_name='Archived')),
                ('dance_type', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='classes', to='classes.dancetype', verbose_name='Dance Type')),
                ('instructor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='classes', to='members.instructor', verbose_name='Instructor')),
            ],
            options={
                'verbose_name': 'Class',
                'verbose_name_plural': 'Classes',
                'db_table': 'classes',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='InstructorRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('rate', models.DecimalField(decimal_places=2, help_text='Percentage of student payments for this dance type', max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)], verbose_name='Commission Rate')),
                ('dance_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='instructor_rates', to='classes.dancetype', verbose_name='Dance Type')),
                ('instructor', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='rates', to='members.instructor', verbose_name='Instructor')),
            ],
            options={
                'verbose_name': 'Instructor Rate',
                'verbose_name_plural': 'Instructor Rates',
                'db_table': 'instructor_rates',
                'unique_together': {('instructor', 'dance_type')},
            },
        ),
        migrations.CreateModel(
            name='Enrollment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('active', models.BooleanField(default=True, verbose_name='Active')),
                ('price', models.DecimalField(blank=True, decimal_places=2, help_text='Class price at the time of enrollment', max_digits=10, null=True, verbose_name='Price')),
                ('custom_price', models.DecimalField(blank=True, decimal_places=2, help_text='Overrides the class price for this member (e.g., legacy pricing)', max_digits=10, null=True, verbose_name='Custom Price')),
                ('payment_interval', models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)], verbose_name='Payment Interval (months)')),
                ('next_payment_date', models.DateField(blank=True, null=True, verbose_name='Next Payment Date')),
                ('dance_class', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='enrollments', to='classes.danceclass', verbose_name='Class')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='enrollments', to='members.member', verbose_name='Member')),
            ],
            options={
                'verbose_name': 'Enrollment',
                'verbose_name_plural': 'Enrollments',
                'db_table': 'member_classes',
                'ordering': ['-created_at'],
            },
        ),
    ]
