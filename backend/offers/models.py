from decimal import Decimal

from django.conf import settings
from django.db import models

from offers.compensation import OfferInput


class JobOffer(models.Model):
    """
    A job offer tracked by a user.

    Stores the compensation parts and location context the comparison engine
    reads; the engine never writes back to this model.
    """
    WORK_MODES = [
        ('onsite', 'Onsite'),
        ('hybrid', 'Hybrid'),
        ('remote', 'Remote'),
    ]

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='job_offers')
    company_name = models.CharField(max_length=220)
    role_title = models.CharField(max_length=220)
    location = models.CharField(max_length=200, blank=True)
    work_mode = models.CharField(max_length=20, choices=WORK_MODES, default='onsite')

    base_salary = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    bonus = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    equity = models.DecimalField(max_digits=12, decimal_places=2, default=0, help_text='Annualized equity estimate')
    benefits_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text='Annual benefits estimate; the default benefits value is used when empty',
    )
    cost_of_living_index = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal('100'))

    is_archived = models.BooleanField(default=False)
    archived_reason = models.CharField(max_length=120, blank=True)
    archived_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['owner', '-updated_at'], name='offers_jobo_owner_i_3f1c2a_idx'),
            models.Index(fields=['owner', 'is_archived'], name='offers_jobo_owner_i_8d4e71_idx'),
        ]

    def __str__(self):
        return f"{self.role_title} @ {self.company_name}"

    def to_offer_input(self) -> OfferInput:
        return OfferInput(
            job_id=str(self.id),
            company=self.company_name,
            job_title=self.role_title,
            location=self.location,
            work_mode=self.work_mode,
            salary=self.base_salary,
            bonus=self.bonus,
            equity=self.equity,
            benefits=self.benefits_value,
            archived=self.is_archived,
            archive_reason=self.archived_reason,
        )


class SavedOfferComparison(models.Model):
    """
    Snapshot of a comparison a user chose to keep.

    ``inputs`` holds exactly the parameters needed to reproduce ``result``.
    """
    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='saved_offer_comparisons')
    name = models.CharField(max_length=200, blank=True)
    job_ids = models.JSONField(default=list)
    inputs = models.JSONField(default=dict)
    result = models.JSONField(default=dict)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-updated_at']
        indexes = [
            models.Index(fields=['owner', '-updated_at'], name='offers_save_owner_i_5b9a0c_idx'),
        ]

    def __str__(self):
        return self.name or f"Comparison {self.pk}"
