# Overview: Demo roster, categories and medicines loaded into the in-memory store at startup.

"""
Seed data.

Domain data is not persisted, so every start begins from this set. Safe to
rerun: rows are matched on username / category name / batch number and
skipped when already present.

The three staff accounts all use the password "password".
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Category, Medicine, User
from ..time_utils import start_of_day, utcnow

DEMO_PASSWORD = "password"

USERS_SEED = [
    ("John Smith", "owner", "owner@pharmacy.com", "owner"),
    ("Sarah Johnson", "pharmacist", "pharmacist@pharmacy.com", "pharmacist"),
    ("Mike Wilson", "cashier", "cashier@pharmacy.com", "cashier"),
]

CATEGORIES_SEED = [
    ("Pain Relief", "Analgesics and anti-inflammatories"),
    ("Antibiotics", "Prescription antibacterial medicines"),
    ("Vitamins & Supplements", None),
    ("Cold & Flu", "Decongestants, cough syrups and lozenges"),
    ("Digestive Health", "Antacids and gastrointestinal remedies"),
]

# (name, generic_name, batch, manufacturer, category, price_cents, stock, days_to_expiry)
MEDICINES_SEED = [
    ("Panadol", "Paracetamol", "PAN-2024-001", "GSK", "Pain Relief", 550, 150, 400),
    ("Brufen 400mg", "Ibuprofen", "BRU-2024-014", "Abbott", "Pain Relief", 875, 8, 210),
    ("Amoxil 500mg", "Amoxicillin", "AMX-2023-112", "GSK", "Antibiotics", 1250, 45, 20),
    ("Zithromax 250mg", "Azithromycin", "ZTH-2024-007", "Pfizer", "Antibiotics", 2199, 0, 300),
    ("Vitamin C 1000mg", "Ascorbic Acid", "VTC-2023-090", "Nature's Bounty", "Vitamins & Supplements", 999, 60, -5),
    ("Benadryl Syrup", "Diphenhydramine", "BEN-2024-031", "Johnson & Johnson", "Cold & Flu", 725, 5, 25),
    ("Gaviscon Liquid", "Sodium Alginate", "GAV-2024-018", "Reckitt", "Digestive Health", 1150, 32, 500),
]


def seed_demo_data() -> dict:
    created_counts = {"users": 0, "categories": 0, "medicines": 0}
    now = utcnow()

    for name, username, email, role in USERS_SEED:
        if db.session.query(User).filter_by(username=username).first():
            continue
        db.session.add(
            User(
                name=name,
                username=username,
                email=email,
                role=role,
                password=DEMO_PASSWORD,
                created_at=now,
            )
        )
        created_counts["users"] += 1

    categories: dict[str, Category] = {}
    for name, description in CATEGORIES_SEED:
        category = db.session.query(Category).filter_by(name=name).first()
        if not category:
            category = Category(name=name, description=description, created_at=now)
            db.session.add(category)
            created_counts["categories"] += 1
        categories[name] = category
    db.session.flush()

    for name, generic, batch, manufacturer, category_name, price_cents, stock, days in MEDICINES_SEED:
        if db.session.query(Medicine).filter_by(batch_number=batch).first():
            continue
        db.session.add(
            Medicine(
                name=name,
                generic_name=generic,
                batch_number=batch,
                manufacturer=manufacturer,
                category_id=categories[category_name].id,
                price_cents=price_cents,
                stock_quantity=stock,
                expiry_date=start_of_day(now) + timedelta(days=days),
                created_at=now,
                updated_at=now,
            )
        )
        created_counts["medicines"] += 1

    db.session.commit()
    current_app.logger.info("Seeded demo data: %s", created_counts)
    return created_counts
