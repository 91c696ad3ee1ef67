
import sys
import os

# Add parent dir to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from pricesync.config import get_settings
from pricesync.domain.models.product import Product
from pricesync.infrastructure.database import Base, SessionLocal, engine
from pricesync.infrastructure.repositories.product_repository import SQLAlchemyProductRepository

PRODUCTS = [
    ("SKU-1001", "Eco Water Bottle", "4.50", "120"),
    ("SKU-1002", "Adventure Backpack", "28.25", "70"),
    ("SKU-1003", "Wireless Earbuds", "18.90", "95"),
    ("SKU-1004", "Travel Mug", "6.10", "110"),
    ("SKU-1005", "Desk Lamp", "11.75", "80"),
    ("SKU-1006", "Yoga Mat", "9.40", "90"),
    ("SKU-1007", "Smart Notebook", "14.60", "85"),
    ("SKU-1008", "Portable Charger", "12.30", "100"),
]


def seed():
    print("Seeding demo products...")
    Base.metadata.create_all(bind=engine)
    currency = get_settings().ODOO_CURRENCY

    db = SessionLocal()
    try:
        # no dispatcher: seeded rows stay pending until pushed via /api/sync/push
        repo = SQLAlchemyProductRepository(db, Product)
        for sku, name, cost, markup in PRODUCTS:
            product = repo.get_by_sku(sku) or Product(sku=sku)
            product.name = name
            product.cost_price = cost
            product.markup_percent = markup
            product.currency = currency
            repo.save(product)
            print(f"  {sku}: cost {product.cost_price} + {product.markup_percent}% = {product.sale_price} {product.currency}")

        print(f"Seed successful: {len(PRODUCTS)} products.")
    except Exception as e:
        print(f"Seed failed: {e}")
        db.rollback()
    finally:
        db.close()

if __name__ == "__main__":
    seed()
