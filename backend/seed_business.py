"""
Database seeding script for a demo business.

Creates one business with opening capital, seeds its chart of accounts,
records a sale, a purchase and an expense, and prints an OWNER token.
Run this script after the database is set up.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from backend.ledger.db.session import AsyncSessionLocal, engine, Base
from backend.ledger.core.jwt import create_access_token
from backend.ledger.domain.accounting.chart_of_accounts import ensure_chart_of_accounts
from backend.ledger.main import app  # noqa: F401  registers every model
from backend.ledger.models.business import Business
from backend.ledger.models.enums import UserRole
from backend.ledger.models.ledger_enums import PaymentMethod
from backend.ledger.schemas.documents import (
    ExpenseCreate, PaymentCreate, PurchaseCreate, SaleCreate, SaleLineCreate
)
from backend.ledger.services.transactions import record_expense, record_purchase, record_sale
from sqlalchemy import select

DEMO_BUSINESS = "Demo Corner Shop"


async def seed_business():
    """
    Seed a demo business.

    Creates:
    - 1 business with £1,000.00 opening capital
    - its standard chart of accounts
    - 1 purchase (part paid), 1 sale (cash + mobile money), 1 rent expense
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting business seeding...")

        result = await db.execute(
            select(Business).where(Business.name == DEMO_BUSINESS)
        )
        business = result.scalar_one_or_none()

        if business:
            print(f"ℹ️  {DEMO_BUSINESS} already exists (id={business.id}), skipping documents")
        else:
            business = Business(name=DEMO_BUSINESS, opening_capital_pence=100000, vat_enabled=True)
            db.add(business)
            await db.commit()
            print(f"✅ Created business (id={business.id})")

            created = await ensure_chart_of_accounts(db, business.id)
            print(f"✅ Seeded {created} accounts")

            await record_purchase(db, business.id, PurchaseCreate(
                supplier_name="Wholesale Ltd",
                subtotal_pence=40000,
                vat_pence=8000,
                payments=[PaymentCreate(method=PaymentMethod.TRANSFER, amount_pence=20000)],
            ))
            print("✅ Recorded purchase: £480.00, £200.00 paid")

            await record_sale(db, business.id, SaleCreate(
                lines=[SaleLineCreate(description="Rice 5kg", qty=3, unit_price_pence=1200, unit_cost_pence=800)],
                vat_pence=720,
                payments=[
                    PaymentCreate(method=PaymentMethod.CASH, amount_pence=2000),
                    PaymentCreate(method=PaymentMethod.MOBILE_MONEY, amount_pence=2320),
                ],
            ))
            print("✅ Recorded sale: £43.20, fully paid")

            await record_expense(db, business.id, ExpenseCreate(
                account_code="6100",
                vendor_name="Landlord",
                amount_pence=15000,
                payments=[PaymentCreate(method=PaymentMethod.CASH, amount_pence=15000)],
            ))
            print("✅ Recorded rent expense: £150.00")

        token = create_access_token(data={
            "sub": "owner",
            "user_id": 1,
            "role": UserRole.OWNER.value,
            "business_id": business.id,
        })

        print("\n🎉 Business seeding completed successfully!")
        print(f"\nOWNER token for business {business.id}:")
        print(f"  {token}")
        print("\nTry: GET /v1/businesses/{id}/reports/balance-sheet".replace("{id}", str(business.id)))


if __name__ == "__main__":
    asyncio.run(seed_business())
