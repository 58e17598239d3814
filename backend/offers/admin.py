from django.contrib import admin

from .models import JobOffer, SavedOfferComparison


@admin.register(JobOffer)
class JobOfferAdmin(admin.ModelAdmin):
    list_display = ['role_title', 'company_name', 'owner', 'work_mode', 'base_salary', 'is_archived', 'updated_at']
    list_filter = ['work_mode', 'is_archived']
    search_fields = ['role_title', 'company_name', 'location', 'owner__email']
    readonly_fields = ['created_at', 'updated_at', 'archived_at']


@admin.register(SavedOfferComparison)
class SavedOfferComparisonAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'created_at', 'updated_at']
    search_fields = ['name', 'owner__email']
    readonly_fields = ['created_at', 'updated_at']
