"""
Static fallback dataset.

WHAT: Demo suppliers shown when the store is unreachable and merged under remote data otherwise
WHY: The directory must never render empty
HOW: Plain SupplierRecord literals; ids are short strings so they never look like store ids
"""

from ..models.directory import Industry, ProductRecord, SupplierRecord


def _unsplash(photo_id: str) -> str:
    return f"https://images.unsplash.com/photo-{photo_id}?q=80&w=800&auto=format&fit=crop"


FALLBACK_SUPPLIERS: tuple[SupplierRecord, ...] = (
    SupplierRecord(
        id="1",
        name="Phnom Penh Textile Co., Ltd.",
        industry=Industry.GARMENT_TEXTILE,
        category="Outerwear",
        location="Phnom Penh",
        rating=4.8,
        description=(
            "Leading manufacturer of high-quality jackets and sportswear for global brands. "
            "ISO 9001 certified. We operate state-of-the-art sewing lines and utilize advanced "
            "bonding technologies."
        ),
        established_year=2005,
        employee_count="2,500+",
        factory_size="15,000 sqm",
        export_markets=("USA", "EU", "Japan"),
        business_type="Manufacturer",
        production_capacity="150,000 units/month",
        certifications=("ISO 9001", "OEKO-TEX"),
        contact_email="sales@pptextile.kh",
        image_url=_unsplash("1551434678-e076c223a692"),
        products=(
            ProductRecord(
                id="p1",
                supplier_id="1",
                name="Technical Raincoat",
                description=(
                    "Triple-layer waterproof tech-fabric with taped seams. "
                    "Optimized for heavy rain and high durability."
                ),
                price="$15.00",
                moq="500 units",
                category="Outerwear",
                images=(_unsplash("1551434678-e076c223a692"), _unsplash("1556761175-4b46a572b786")),
            ),
            ProductRecord(
                id="p2",
                supplier_id="1",
                name="Insulated Ski Jacket",
                description=(
                    "Sub-zero performance insulation with high breathability. "
                    "Used by major Nordic sportswear brands."
                ),
                price="$28.00",
                moq="300 units",
                category="Outerwear",
                images=(_unsplash("1521791136064-7986c2959663"), _unsplash("1558444479-2748af58b62c")),
            ),
        ),
    ),
    SupplierRecord(
        id="2",
        name="Angkor Organic Cashews",
        industry=Industry.AGRICULTURE,
        category="Nuts & Seeds",
        location="Kampong Thom",
        rating=4.9,
        description=(
            "Specializing in premium organic cashews harvested from sustainable farms across "
            "Cambodia. Our processing facility follows strict international organic standards."
        ),
        established_year=2012,
        employee_count="150+",
        factory_size="5,000 sqm",
        export_markets=("EU", "South Korea", "China"),
        business_type="Agricultural Cooperative",
        production_capacity="500 MT/annum",
        certifications=("USDA Organic", "EU Organic"),
        contact_email="info@angkororganic.com",
        image_url=_unsplash("1596541223130-5d31a73fb6c6"),
        products=(
            ProductRecord(
                id="p3",
                supplier_id="2",
                name="Roasted Cashews",
                description="Honey-roasted premium grade kernels. Vacuum packed for maximum freshness retention.",
                price="$8.50 / kg",
                moq="100 kg",
                category="Nuts",
                images=(_unsplash("1596541223130-5d31a73fb6c6"), _unsplash("1509315811345-672d83ef2fbc")),
            ),
            ProductRecord(
                id="p4",
                supplier_id="2",
                name="Raw Cashew Kernels",
                description="Unprocessed WW320 grade cashews. Perfect for further processing or natural snack brands.",
                price="$7.20 / kg",
                moq="500 kg",
                category="Nuts",
                images=(_unsplash("1534073828943-f801091bb18c"),),
            ),
        ),
    ),
    SupplierRecord(
        id="3",
        name="Mekong Craft Collective",
        industry=Industry.HANDICRAFTS,
        category="Home Decor",
        location="Siem Reap",
        rating=4.7,
        description=(
            "A social enterprise connecting rural artisans with international buyers. "
            "Unique hand-woven products that celebrate Cambodian heritage."
        ),
        established_year=2018,
        employee_count="300 Artisans",
        factory_size="N/A (Decentralized)",
        export_markets=("Global (DTC)", "EU Boutique Stores"),
        business_type="Social Enterprise",
        production_capacity="5,000 pieces/month",
        certifications=("Fair Trade Certified",),
        contact_email="contact@mekongcrafts.org",
        image_url=_unsplash("1616489953149-80802f0a174c"),
        products=(
            ProductRecord(
                id="p5",
                supplier_id="3",
                name="Hand-woven Silk Scarf",
                description="Traditional Ikat weaving technique. 100% natural mulberry silk from Banteay Meanchey.",
                price="$14.00",
                moq="50 units",
                category="Textiles",
                images=(_unsplash("1616489953149-80802f0a174c"), _unsplash("1583316174775-bd6dc0e9f298")),
            ),
        ),
    ),
)
