import uuid

import django.core.serializers.json
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Receipt',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('owner_id', models.CharField(db_index=True, max_length=64)),
                ('merchant_name', models.CharField(blank=True, max_length=100, null=True)),
                ('address', models.CharField(blank=True, max_length=255, null=True)),
                ('date_time', models.CharField(blank=True, max_length=64, null=True)),
                ('subtotal', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True)),
                ('tax', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True)),
                ('tip', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True)),
                ('total', models.DecimalField(blank=True, decimal_places=6, max_digits=12, null=True)),
                ('items', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'receipts',
            },
        ),
        migrations.CreateModel(
            name='SplitSession',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('host_id', models.CharField(max_length=64)),
                ('join_code', models.CharField(db_index=True, max_length=6)),
                ('status', models.CharField(choices=[('lobby', 'Lobby'), ('active', 'Active'), ('finished', 'Finished')], default='lobby', max_length=10)),
                ('settlement_snapshot', models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('receipt', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='sessions', to='splits.receipt')),
            ],
            options={
                'db_table': 'sessions',
            },
        ),
        migrations.AddConstraint(
            model_name='splitsession',
            constraint=models.UniqueConstraint(condition=models.Q(('status', 'finished'), _negated=True), fields=('join_code',), name='unique_open_join_code'),
        ),
        migrations.CreateModel(
            name='SessionParticipant',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('user_id', models.CharField(max_length=64)),
                ('display_name', models.CharField(max_length=50)),
                ('joined_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='participants', to='splits.splitsession')),
            ],
            options={
                'db_table': 'session_participants',
                'ordering': ['joined_at', 'id'],
            },
        ),
        migrations.AddConstraint(
            model_name='sessionparticipant',
            constraint=models.UniqueConstraint(fields=('session', 'user_id'), name='unique_session_participant'),
        ),
        migrations.CreateModel(
            name='ItemClaim',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_index', models.PositiveIntegerField()),
                ('user_id', models.CharField(max_length=64)),
                ('claimed_at', models.DateTimeField(auto_now_add=True)),
                ('session', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='claims', to='splits.splitsession')),
            ],
            options={
                'db_table': 'item_claims',
            },
        ),
        migrations.AddIndex(
            model_name='itemclaim',
            index=models.Index(fields=['session', 'item_index'], name='item_claim_session_idx'),
        ),
        migrations.AddConstraint(
            model_name='itemclaim',
            constraint=models.UniqueConstraint(fields=('session', 'item_index', 'user_id'), name='unique_item_claim'),
        ),
        migrations.CreateModel(
            name='ChangeEvent',
            fields=[
                ('id', models.BigAutoField(primary_key=True, serialize=False)),
                ('session_id', models.UUIDField(db_index=True)),
                ('table', models.CharField(choices=[('sessions', 'Sessions'), ('session_participants', 'Participants'), ('item_claims', 'Claims')], max_length=32)),
                ('event', models.CharField(choices=[('INSERT', 'Insert'), ('UPDATE', 'Update'), ('DELETE', 'Delete')], max_length=6)),
                ('row_id', models.CharField(max_length=64)),
                ('row', models.JSONField(encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ('created_at', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'change_events',
                'ordering': ['id'],
            },
        ),
        migrations.AddIndex(
            model_name='changeevent',
            index=models.Index(fields=['session_id', 'id'], name='change_event_cursor_idx'),
        ),
    ]
