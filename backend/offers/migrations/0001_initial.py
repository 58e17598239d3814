from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='JobOffer',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('company_name', models.CharField(max_length=220)),
                ('role_title', models.CharField(max_length=220)),
                ('location', models.CharField(blank=True, max_length=200)),
                ('work_mode', models.CharField(choices=[('onsite', 'Onsite'), ('hybrid', 'Hybrid'), ('remote', 'Remote')], default='onsite', max_length=20)),
                ('base_salary', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('bonus', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('equity', models.DecimalField(decimal_places=2, default=0, help_text='Annualized equity estimate', max_digits=12)),
                ('benefits_value', models.DecimalField(blank=True, decimal_places=2, help_text='Annual benefits estimate; the default benefits value is used when empty', max_digits=12, null=True)),
                ('cost_of_living_index', models.DecimalField(decimal_places=2, default=Decimal('100'), max_digits=6)),
                ('is_archived', models.BooleanField(default=False)),
                ('archived_reason', models.CharField(blank=True, max_length=120)),
                ('archived_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='job_offers', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-updated_at'],
            },
        ),
        migrations.CreateModel(
            name='SavedOfferComparison',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(blank=True, max_length=200)),
                ('job_ids', models.JSONField(default=list)),
                ('inputs', models.JSONField(default=dict)),
                ('result', models.JSONField(default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='saved_offer_comparisons', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-updated_at'],
            },
        ),
        migrations.AddIndex(
            model_name='joboffer',
            index=models.Index(fields=['owner', '-updated_at'], name='offers_jobo_owner_i_3f1c2a_idx'),
        ),
        migrations.AddIndex(
            model_name='joboffer',
            index=models.Index(fields=['owner', 'is_archived'], name='offers_jobo_owner_i_8d4e71_idx'),
        ),
        migrations.AddIndex(
            model_name='savedoffercomparison',
            index=models.Index(fields=['owner', '-updated_at'], name='offers_save_owner_i_5b9a0c_idx'),
        ),
    ]
