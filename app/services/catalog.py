"""In-memory catalog of platforms, listing templates and the product on sale."""

import logging
from typing import Dict, List, Optional

from app.schemas.catalog_models import ListingTemplate, Platform, ProductProfile
from app.schemas.error_models import ServiceUnavailableError


logger = logging.getLogger(__name__)


DEFAULT_PRODUCT = ProductProfile(
    name="CNCUSA-HD-12L 12V DC Mini-Split Air Conditioner",
    summary="Cruise N Comfort USA HD-12L 12V DC mini-split air conditioner",
    specifications=[
        "Cooling Capacity: 10,000 BTU",
        "Power: 12V DC (10-15 VDC range)",
        "Current Draw: 38-55 AMPS",
        "Construction: Stainless steel for harsh environments",
        "System: Split system (indoor/outdoor units)",
        "Condition: Brand new, in original packaging",
    ],
    target_audience=(
        "Van life enthusiasts, RV owners, off-grid living community, "
        "marine applications, professional van builders"
    ),
    location="Mid-Wilshire, Los Angeles (90036)",
    retail_price="$4,398 + $175 shipping = $4,573 total",
    asking_price="$4,200 FIRM",
    notes=[
        "Pickup only - cannot ship or deliver",
        "Professional installation required (R134a refrigerant)",
    ],
)


DEFAULT_PLATFORMS = [
    Platform(
        id="facebook",
        display_name="Facebook Marketplace",
        base_url="https://www.facebook.com/marketplace",
        description="Primary platform with largest user base and AI auto-reply support",
    ),
    Platform(
        id="craigslist",
        display_name="Craigslist",
        base_url="https://losangeles.craigslist.org",
        description="Traditional classified ads platform",
    ),
    Platform(
        id="offerup",
        display_name="OfferUp",
        base_url="https://offerup.com",
        description="Mobile-focused marketplace",
    ),
    Platform(
        id="rvforums",
        display_name="RV Forums",
        base_url="https://www.rvforum.net",
        description="Specialized RV and van life communities",
    ),
]


DEFAULT_TEMPLATES = [
    ListingTemplate(
        platform_id="facebook",
        title="Brand New CNCUSA-HD-12L 12V DC Air Conditioner - 10,000 BTU for Van / RV / Off-Grid",
        description=(
            "For sale is a brand new, in-box Cruise N Comfort USA HD-12L 12V DC "
            "mini-split air conditioner. Premium, heavy-duty 10,000 BTU system "
            "designed to run directly off batteries. Never installed or used.\n\n"
            "Price: $4,200 FIRM. Local pickup only in Mid-Wilshire, Los Angeles "
            "(90036). Requires professional installation (R134a refrigerant)."
        ),
        price=4200.00,
        tags=["12v", "air conditioner", "van life", "RV", "off-grid", "CNCUSA", "mini-split"],
    ),
    ListingTemplate(
        platform_id="craigslist",
        title="CNCUSA HD-12L 12V DC Mini-Split AC - New in Box - Van/RV/Off-Grid - $4200",
        description=(
            "BRAND NEW CNCUSA-HD-12L 12V DC MINI-SPLIT AIR CONDITIONER\n"
            "10,000 BTU Professional Grade System\n\n"
            "RETAIL: $4,398 + $175 shipping = $4,573 total\n"
            "MY PRICE: $4,200 FIRM\n\n"
            "PICKUP ONLY: Mid-Wilshire, LA (90036)\n"
            "PAYMENT: Cash, Venmo, or Zelle. NO CHECKS, NO TRADES, NO SHIPPING"
        ),
        price=4200.00,
        tags=["12v ac", "mini split", "van life", "rv", "off grid", "new"],
    ),
    ListingTemplate(
        platform_id="offerup",
        title="NEW CNCUSA 12V DC Air Conditioner - Van/RV - $4200 FIRM",
        description=(
            "BRAND NEW CNCUSA-HD-12L 12V DC Mini-Split AC\n"
            "10,000 BTU Professional Grade, direct 12V DC operation.\n"
            "Never used, in original box.\n\n"
            "MY PRICE: $4,200 FIRM. Pickup in Mid-Wilshire, LA. "
            "Professional installation required."
        ),
        price=4200.00,
        tags=["air conditioner", "van life", "rv", "12v", "off-grid"],
    ),
    ListingTemplate(
        platform_id="rvforums",
        title="[FS] CNCUSA HD-12L 12V DC Mini-Split - Perfect for Battery Systems",
        description=(
            "Fellow RVers and Van Lifers,\n\n"
            "For sale: brand new CNCUSA-HD-12L 12V DC mini-split air conditioner "
            "that runs directly off your house batteries without an inverter.\n\n"
            "Price: $4,200 firm (retail is $4,398 + $175 shipping). "
            "Mid-Wilshire, Los Angeles - pickup only. New in box, never installed."
        ),
        price=4200.00,
        tags=["12v", "dc", "air conditioning", "van life", "rv", "boondocking"],
    ),
]


class Catalog:
    """Read-only lookup of platform, template and product data.

    The catalog is an explicitly scoped resource: it must be opened before
    lookups and is closed by the application lifespan on shutdown.
    """

    def __init__(
        self,
        platforms: Optional[List[Platform]] = None,
        templates: Optional[List[ListingTemplate]] = None,
        product: Optional[ProductProfile] = None
    ):
        self._seed_platforms = list(platforms if platforms is not None else DEFAULT_PLATFORMS)
        self._seed_templates = list(templates if templates is not None else DEFAULT_TEMPLATES)
        self.product = product or DEFAULT_PRODUCT

        self._platforms: Dict[str, Platform] = {}
        self._templates: Dict[str, ListingTemplate] = {}
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        """Load seed data into the lookup tables."""
        if self._open:
            return

        self._platforms = {p.id: p for p in self._seed_platforms}
        self._templates = {}
        for template in self._seed_templates:
            # first template per platform wins
            self._templates.setdefault(template.platform_id, template)

        self._open = True
        logger.info(
            f"Catalog opened with {len(self._platforms)} platforms "
            f"and {len(self._templates)} templates"
        )

    async def close(self) -> None:
        """Release lookup tables."""
        if not self._open:
            return

        self._platforms.clear()
        self._templates.clear()
        self._open = False
        logger.info("Catalog closed")

    def _ensure_open(self) -> None:
        if not self._open:
            raise ServiceUnavailableError("Catalog is not open")

    async def get_platform(self, platform_id: str) -> Optional[Platform]:
        """Return the active platform with this id, or None."""
        self._ensure_open()
        platform = self._platforms.get(platform_id)
        if platform is None or not platform.is_active:
            return None
        return platform

    async def get_template(self, platform_id: str) -> Optional[ListingTemplate]:
        """Return the listing template for a platform, or None."""
        self._ensure_open()
        return self._templates.get(platform_id)

