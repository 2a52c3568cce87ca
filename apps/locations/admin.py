"""Admin registration for rental sites."""

from django.contrib import admin

from .models import Box, Distributor, Location, LocationPricing, Stand


class StandInline(admin.TabularInline):
    model = Stand
    extra = 0


class LocationPricingInline(admin.TabularInline):
    model = LocationPricing
    extra = 0


@admin.register(Distributor)
class DistributorAdmin(admin.ModelAdmin):
    list_display = ('name', 'owner', 'contact_email', 'created_at')
    search_fields = ('name', 'owner__email')


@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ('display_code', 'name', 'distributor', 'is_active')
    list_filter = ('is_active', 'distributor')
    search_fields = ('display_code', 'name')
    inlines = [StandInline, LocationPricingInline]


@admin.register(Box)
class BoxAdmin(admin.ModelAdmin):
    list_display = ('display_code', 'stand', 'model', 'status', 'score', 'price_per_day')
    list_filter = ('model', 'status', 'stand__location')
    search_fields = ('display_code',)
    readonly_fields = ('score',)
