"""
Seed the catalogue with one demo rental and one demo flip.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pat.db.database import get_db_context, init_db
from pat.db.models import CatalogueProperty
from pat.services import catalogue

DEMO_PROPERTIES = [
    {
        "address": "412 Maple Ave, Unit 2, Columbus, OH 43201",
        "module": catalogue.MODULE_INCOME_PROPERTY,
        "comments": "Duplex near campus, both units leased",
        "inputs": {
            "property_value": 300000,
            "percent_down_pct": 20,
            "rate_apr_pct": 6,
            "loan_length_years": 30,
            "taxes_monthly": 250,
            "insurance_monthly": 100,
            "hoa_monthly": 0,
            "est_improvement_cost": 0,
            "unit_count": 2,
            "rent_per_unit_monthly": 1500,
        },
    },
    {
        "address": "88 Orchard Ln, Dayton, OH 45402",
        "module": catalogue.MODULE_FLIP,
        "comments": "Cosmetic rehab, kitchen + floors",
        "inputs": {
            "property_value": 250000,
            "percent_down_pct": 20,
            "rate_apr_pct": 6,
            "loan_length_years": 30,
            "est_fixing_cost": 40000,
            "taxes_monthly": 200,
            "insurance_monthly": 90,
            "hoa_monthly": 0,
            "months_hold": 6,
            "desired_resale_value": 420000,
            "interest_only_first_year": True,
        },
    },
]


def main():
    init_db()

    with get_db_context() as db:
        existing = [
            {"id": p.id, "source_address": p.source_address}
            for p in db.query(CatalogueProperty).filter(CatalogueProperty.is_deleted == False)
        ]

        for demo in DEMO_PROPERTIES:
            duplicate = catalogue.find_duplicate(existing, demo["address"])
            if duplicate:
                print(f"Property '{demo['address']}' already exists (ID: {duplicate['id']})")
                continue

            record = catalogue.build_record(demo["module"], demo["inputs"])
            prop = CatalogueProperty(
                module=record["module"],
                source_address=demo["address"],
                inputs=record["inputs"],
                computed=record["computed"],
                bands=record["bands"],
                comments=demo["comments"],
            )
            db.add(prop)
            db.flush()
            print(f"Created {prop.module} property: {demo['address']} (ID: {prop.id})")
            print(f"  bands: {record['bands']}")


if __name__ == "__main__":
    main()
