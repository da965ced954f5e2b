"""
Seed script: creates the demo company with the "Tech Plaza" sample data and
prints bearer tokens for an admin, a manager and a viewer.
Run from the repo root: python -m scripts.seed
"""
import asyncio
import sys
import os
import uuid
from datetime import date, datetime
from typing import Optional

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from api.database import AsyncSessionLocal, init_db, close_db
from api.models.company import Company
from api.models.project import Project
from api.models.phase import Phase, Category
from api.models.vendor import Vendor
from api.models.item import Item
from api.models.purchase import Purchase
from api.services.auth_service import create_access_token

# ---------- Fixed UUIDs ----------

DEMO_COMPANY_ID = uuid.UUID("c0000000-0000-0000-0000-000000000001")

USER_ADMIN_ID = uuid.UUID("a0000000-0000-0000-0000-000000000101")
USER_MANAGER_ID = uuid.UUID("a0000000-0000-0000-0000-000000000102")
USER_VIEWER_ID = uuid.UUID("a0000000-0000-0000-0000-000000000103")

DEMO_USERS = (
    (USER_ADMIN_ID, "admin", "admin@siteledger.dev"),
    (USER_MANAGER_ID, "manager", "site.manager@siteledger.dev"),
    (USER_VIEWER_ID, "viewer", "viewer@siteledger.dev"),
)


async def seed_demo_company(
    db: AsyncSession,
    company_id: uuid.UUID = DEMO_COMPANY_ID,
    now: Optional[datetime] = None,
) -> dict:
    """Add the demo data set for one company and flush. Returns the rows by name.

    Grey phase of Tech Plaza: budget 100,000 with 65,000 spent over two
    purchases. One cement purchase is dated `now` so "this month" questions
    have an answer.
    """
    now = now or datetime.utcnow()

    company = Company(id=company_id, name="Demo Construction Co.", slug=f"demo-{company_id.hex[:8]}")
    db.add(company)

    projects = {
        "Tech Plaza": Project(
            company_id=company_id, name="Tech Plaza", client="Northwind Holdings",
            location="Austin, TX", budget=500000, status="ongoing",
            start_date=date(2026, 1, 5), created_by=USER_ADMIN_ID,
        ),
        "Riverside Towers": Project(
            company_id=company_id, name="Riverside Towers", client="Bluewater Estates",
            location="Portland, OR", budget=300000, status="ongoing",
            start_date=date(2026, 2, 1), created_by=USER_ADMIN_ID,
        ),
        "Harbor Depot": Project(
            company_id=company_id, name="Harbor Depot", client="Portside Logistics",
            budget=0, status="starting_soon", start_date=date(2026, 6, 1),
            created_by=USER_ADMIN_ID,
        ),
    }
    for i, project in enumerate(projects.values()):
        # distinct creation times keep "oldest first" listings stable
        project.created_at = datetime(2026, 1, 1, 9, i)
        db.add(project)
    await db.flush()

    phases = {
        "Grey": Phase(company_id=company_id, project_id=projects["Tech Plaza"].id,
                      name="Grey", budget=100000, description="Structure and masonry"),
        "Finishing": Phase(company_id=company_id, project_id=projects["Tech Plaza"].id,
                           name="Finishing", budget=50000),
        "Foundation": Phase(company_id=company_id, project_id=projects["Riverside Towers"].id,
                            name="Foundation", budget=80000),
    }
    for i, phase in enumerate(phases.values()):
        phase.created_at = datetime(2026, 1, 2, 9, i)
        db.add(phase)
    await db.flush()

    categories = {
        "Structural Materials": Category(company_id=company_id, phase_id=phases["Grey"].id,
                                         name="Structural Materials"),
        "Paint & Coatings": Category(company_id=company_id, phase_id=phases["Finishing"].id,
                                     name="Paint & Coatings"),
        "Concrete Works": Category(company_id=company_id, phase_id=phases["Foundation"].id,
                                   name="Concrete Works"),
    }
    db.add_all(categories.values())

    vendors = {
        "BuildCo Supplies": Vendor(company_id=company_id, name="BuildCo Supplies",
                                   contact_person="Maria Lopez", email="orders@buildco.example",
                                   phone="+15125550101", rating=4.5),
        "Steel Masters": Vendor(company_id=company_id, name="Steel Masters",
                                contact_person="Dev Patel", email="sales@steelmasters.example",
                                rating=4.0),
        "ColorCraft Paints": Vendor(company_id=company_id, name="ColorCraft Paints",
                                    email="hello@colorcraft.example"),
    }
    for i, vendor in enumerate(vendors.values()):
        vendor.created_at = datetime(2026, 1, 3, 9, i)
        db.add(vendor)
    await db.flush()

    items = {
        "Cement": Item(company_id=company_id, category_id=categories["Structural Materials"].id,
                       name="Cement", unit="bag", rate=80,
                       default_vendor_id=vendors["BuildCo Supplies"].id),
        "Steel Rebar": Item(company_id=company_id, category_id=categories["Structural Materials"].id,
                            name="Steel Rebar", unit="ton", rate=5000),
        "Interior Paint": Item(company_id=company_id, category_id=categories["Paint & Coatings"].id,
                               name="Interior Paint", unit="gallon", rate=45),
        "Ready-Mix Concrete": Item(company_id=company_id, category_id=categories["Concrete Works"].id,
                                   name="Ready-Mix Concrete", unit="m3", rate=120),
    }
    db.add_all(items.values())
    await db.flush()

    def purchase(item, phase, project, vendor, quantity, price, when):
        return Purchase(
            company_id=company_id,
            item_id=items[item].id,
            category_id=items[item].category_id,
            phase_id=phases[phase].id,
            project_id=projects[project].id,
            vendor_id=vendors[vendor].id if vendor else None,
            quantity=quantity,
            price_per_unit=price,
            purchase_date=when,
            created_by=USER_MANAGER_ID,
        )

    purchases = [
        purchase("Cement", "Grey", "Tech Plaza", "BuildCo Supplies", 500, 80, now),
        purchase("Steel Rebar", "Grey", "Tech Plaza", "Steel Masters", 5, 5000, datetime(2026, 2, 10)),
        purchase("Interior Paint", "Finishing", "Tech Plaza", "ColorCraft Paints", 100, 45, datetime(2026, 3, 2)),
        purchase("Ready-Mix Concrete", "Foundation", "Riverside Towers", "BuildCo Supplies", 200, 120,
                 datetime(2026, 2, 20)),
        purchase("Cement", "Foundation", "Riverside Towers", "BuildCo Supplies", 100, 80, datetime(2026, 2, 21)),
        purchase("Steel Rebar", "Foundation", "Riverside Towers", None, 2, 5000, datetime(2026, 2, 22)),
    ]
    db.add_all(purchases)
    await db.flush()

    return {
        "company": company,
        "projects": projects,
        "phases": phases,
        "categories": categories,
        "vendors": vendors,
        "items": items,
        "purchases": purchases,
    }


async def seed():
    await init_db()
    async with AsyncSessionLocal() as db:
        # Check if already seeded
        result = await db.execute(select(Company).where(Company.id == DEMO_COMPANY_ID))
        if result.scalar_one_or_none():
            print("Seed data already exists. Skipping.")
        else:
            data = await seed_demo_company(db)
            await db.commit()
            print("Seed data inserted successfully!")
            print(f"  Projects: {len(data['projects'])}")
            print(f"  Phases: {len(data['phases'])}")
            print(f"  Vendors: {len(data['vendors'])}")
            print(f"  Purchases: {len(data['purchases'])}")

    print("\nBearer tokens:")
    for user_id, role, email in DEMO_USERS:
        token = create_access_token(str(user_id), str(DEMO_COMPANY_ID), role, email)
        print(f"  {role:<8} {token}")
    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
