from django.contrib import admin

from ticketing.models import EventBatch, IndividualTicket, PricingTier


class PricingTierInline(admin.TabularInline):
    model = PricingTier
    extra = 0


@admin.register(EventBatch)
class EventBatchAdmin(admin.ModelAdmin):
    list_display = ["event_title", "owner_id", "price", "quantity", "created_at"]
    search_fields = ["event_title", "home_team", "away_team", "owner_id"]
    inlines = [PricingTierInline]


@admin.register(PricingTier)
class PricingTierAdmin(admin.ModelAdmin):
    list_display = ["tier_name", "batch", "tier_price", "tier_quantity", "position"]
    list_filter = ["batch"]


@admin.register(IndividualTicket)
class IndividualTicketAdmin(admin.ModelAdmin):
    list_display = ["code", "ticket_number", "batch", "tier", "is_used", "validated_at"]
    list_filter = ["is_used", "batch"]
    search_fields = ["code"]
    readonly_fields = ["qr_code", "validated_at"]
