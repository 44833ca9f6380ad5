import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Ride',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ride_type', models.CharField(choices=[('DRIVER', 'Driver offer'), ('PASSENGER', 'Passenger demand')], max_length=10)),
                ('status', models.CharField(choices=[('active', 'Active'), ('completed', 'Completed'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], default='active', max_length=10)),
                ('departure', models.CharField(max_length=255)),
                ('destination', models.CharField(max_length=255)),
                ('scheduled_date', models.DateField()),
                ('scheduled_time', models.CharField(max_length=8)),
                ('departs_at', models.DateTimeField(db_index=True)),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('original_seats', models.IntegerField(blank=True, null=True)),
                ('available_seats', models.IntegerField(blank=True, null=True)),
                ('needed_seats', models.IntegerField(blank=True, null=True)),
                ('description', models.TextField(blank=True, default='')),
                ('version', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('expired_at', models.DateTimeField(blank=True, null=True)),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='created_rides', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'rides',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='RidePassenger',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('joined_at', models.DateTimeField(auto_now_add=True)),
                ('passenger', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ride_bookings', to=settings.AUTH_USER_MODEL)),
                ('ride', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bookings', to='rides.ride')),
            ],
            options={
                'db_table': 'ride_passengers',
                'ordering': ['joined_at'],
            },
        ),
        migrations.AddField(
            model_name='ride',
            name='passengers',
            field=models.ManyToManyField(blank=True, related_name='joined_rides', through='rides.RidePassenger', to=settings.AUTH_USER_MODEL),
        ),
        migrations.AddConstraint(
            model_name='ridepassenger',
            constraint=models.UniqueConstraint(fields=('ride', 'passenger'), name='unique_ride_passenger'),
        ),
        migrations.AddConstraint(
            model_name='ride',
            constraint=models.CheckConstraint(condition=models.Q(('ride_type', 'PASSENGER'), models.Q(('available_seats__gte', 0), ('available_seats__lte', models.F('original_seats'))), _connector='OR'), name='ride_seats_within_capacity'),
        ),
        migrations.AddConstraint(
            model_name='ride',
            constraint=models.CheckConstraint(condition=models.Q(models.Q(('available_seats__isnull', False), ('original_seats__isnull', False), ('price__gte', 0), ('price__isnull', False), ('ride_type', 'DRIVER')), models.Q(('available_seats__isnull', True), ('original_seats__isnull', True), ('price__isnull', True), ('ride_type', 'PASSENGER')), _connector='OR'), name='ride_price_and_capacity_for_driver_only'),
        ),
    ]
