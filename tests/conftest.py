import os
import sys
from datetime import date
from decimal import Decimal

import pytest

# Settings are read at import time; point the engine at an in-memory database
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-secret")

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from database import SessionLocal, engine
from models import (
     Base,
     BillingItem,
     BillingItemStatus,
     BillingSettings,
     BillingSummary,
     BillingType,
     Collector,
     CommissionRule,
     CommissionType,
     Organization,
     RuleBillingType,
     SummaryStatus,
)

MONTH = date(2025, 9, 1)


@pytest.fixture(autouse=True)
def _reset_schema():
     Base.metadata.drop_all(bind=engine)
     Base.metadata.create_all(bind=engine)
     yield


@pytest.fixture
def db():
     session = SessionLocal()
     yield session
     session.rollback()
     session.close()


class Seed:
     """Small factory for committed test rows."""

     def __init__(self, db):
          self.db = db

     def _save(self, obj):
          self.db.add(obj)
          self.db.commit()
          return obj

     def org(self, name="Green Valley Mall", code=None, **kwargs):
          return self._save(Organization(name=name, code=code, is_active=True, **kwargs))

     def collector(self, org, name="Tokyo Eco Haulers", **kwargs):
          kwargs.setdefault("is_active", True)
          return self._save(Collector(org_id=org.id, company_name=name, **kwargs))

     def item(self, collector, amount, billing_type=BillingType.FIXED, month=MONTH, **kwargs):
          kwargs.setdefault("status", BillingItemStatus.APPROVED)
          kwargs.setdefault("store_id", 1)
          return self._save(BillingItem(
               org_id=collector.org_id,
               collector_id=collector.id,
               billing_month=month,
               billing_type=billing_type,
               amount=Decimal(str(amount)),
               tax_amount=Decimal("0"),
               item_name=f"{billing_type.value.lower()} item",
               **kwargs
          ))

     def rule(
          self,
          org,
          value,
          commission_type=CommissionType.PERCENTAGE,
          billing_type=RuleBillingType.ALL,
          collector=None,
          **kwargs
     ):
          kwargs.setdefault("is_active", True)
          kwargs.setdefault("effective_from", date(2025, 1, 1))
          return self._save(CommissionRule(
               org_id=org.id,
               collector_id=collector.id if collector else None,
               billing_type=billing_type,
               commission_type=commission_type,
               commission_value=Decimal(str(value)),
               **kwargs
          ))

     def summary(
          self,
          collector,
          fixed=0,
          metered=0,
          other=0,
          tax_rate=Decimal("0.10"),
          status=SummaryStatus.APPROVED,
          month=MONTH
     ):
          subtotal = Decimal(str(fixed)) + Decimal(str(metered)) + Decimal(str(other))
          tax = (subtotal * tax_rate).quantize(Decimal("1"))
          return self._save(BillingSummary(
               org_id=collector.org_id,
               collector_id=collector.id,
               billing_month=month,
               total_fixed_amount=Decimal(str(fixed)),
               total_metered_amount=Decimal(str(metered)),
               total_other_amount=Decimal(str(other)),
               subtotal_amount=subtotal,
               tax_rate=tax_rate,
               tax_amount=tax,
               total_amount=subtotal + tax,
               total_items_count=3,
               fixed_items_count=1,
               metered_items_count=1,
               other_items_count=1,
               status=status,
          ))

     def settings(self, org, **kwargs):
          return self._save(BillingSettings(org_id=org.id, **kwargs))


@pytest.fixture
def seed(db):
     return Seed(db)
