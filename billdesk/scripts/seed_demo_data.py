"""Seed the database with demo clients and invoices.

Usage:
    python -m billdesk.scripts.seed_demo_data --clients 25 --wipe
"""

import argparse
import random
from datetime import date, timedelta

from faker import Faker

from billdesk import create_app, db
from billdesk.models import BillingRecord, Client, ReminderLog, ServiceLineItem, utcnow
from billdesk.utils.validation import (
    BILLING_MODELS,
    CLIENT_SERVICES,
    CLIENT_STATUSES,
    SERVICE_CATEGORIES,
)

fake = Faker()

CURRENCIES = ("INR", "USD")


# ============================================================
#  WIPE (FK-safe order)
# ============================================================

def wipe_domain_data():
    print("Wiping domain data in FK-safe order...")
    db.session.query(ReminderLog).delete()
    db.session.query(ServiceLineItem).delete()
    db.session.query(BillingRecord).delete()
    db.session.query(Client).delete()
    db.session.commit()
    print("Domain data wiped.")


# ============================================================
#  SEED HELPERS
# ============================================================

def seed_client() -> Client:
    created = utcnow() - timedelta(days=random.randint(10, 720))
    plan_model = random.choice((None,) + BILLING_MODELS)
    client = Client(
        name=fake.name(),
        company_name=fake.company() if random.random() < 0.7 else None,
        email=fake.unique.company_email().lower(),
        phone=fake.msisdn()[:12],
        street=fake.street_address(),
        city=fake.city(),
        state=fake.state(),
        country=fake.country(),
        postal_code=fake.postcode(),
        website_url=fake.url(),
        domain_expiry=date.today() + timedelta(days=random.randint(-30, 365)),
        services=random.sample(CLIENT_SERVICES, k=random.randint(1, 3)),
        tags=fake.words(nb=2),
        plan_model=plan_model,
        plan_amount=round(random.uniform(200, 5000), 2) if plan_model else None,
        plan_currency=random.choice(CURRENCIES),
        plan_next_due=date.today() + timedelta(days=random.randint(1, 60)) if plan_model else None,
        status=random.choice(CLIENT_STATUSES),
        notes=fake.sentence(),
        created_at=created,
        updated_at=created + timedelta(days=random.randint(0, (utcnow() - created).days or 1)),
    )
    db.session.add(client)
    return client


def seed_invoices(client: Client, count: int, sequence: list) -> None:
    for _ in range(count):
        sequence[0] += 1
        bill_date = fake.date_between(start_date="-365d", end_date="today")
        items = [
            ServiceLineItem(
                position=i,
                service=random.choice(SERVICE_CATEGORIES),
                description=fake.bs(),
                cost=round(random.uniform(50, 1500), 2),
            )
            for i in range(random.randint(1, 4))
        ]
        due_date = bill_date + timedelta(days=30)
        if due_date < date.today():
            status = random.choice(("paid", "paid", "overdue", "cancelled"))
        else:
            status = "unpaid"
        record = BillingRecord(
            client=client,
            invoice_number=f"INV-{bill_date:%y}-{sequence[0]:03d}",
            amount=sum(item.cost for item in items),
            currency=client.plan_currency or "INR",
            bill_date=bill_date,
            due_date=due_date,
            payment_status=status,
            payment_method=random.choice(("bank transfer", "card", "UPI")) if status == "paid" else None,
            services_billed=items,
        )
        db.session.add(record)


def main():
    parser = argparse.ArgumentParser(description="Seed billdesk demo data")
    parser.add_argument("--clients", type=int, default=20)
    parser.add_argument("--max-invoices", type=int, default=8)
    parser.add_argument("--wipe", action="store_true", help="Delete existing clients/invoices first")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)
        Faker.seed(args.seed)

    app = create_app()
    with app.app_context():
        if args.wipe:
            wipe_domain_data()

        sequence = [BillingRecord.query.count()]
        for _ in range(args.clients):
            client = seed_client()
            seed_invoices(client, random.randint(0, args.max_invoices), sequence)
        db.session.commit()
        print(f"Seeded {args.clients} clients and {sequence[0]} invoices.")


if __name__ == "__main__":
    main()
