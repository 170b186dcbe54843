"""
Base service class with merchant filtering support.
Merchant-scoped read services should inherit from MerchantServiceBase.
"""

from sqlalchemy.orm import Session, Query


class MerchantServiceBase:
    """
    Base service class that scopes queries to one merchant.

    Usage:
        class BillingService(MerchantServiceBase):
            def pending(self):
                return self._q(BillingRecord).filter(BillingRecord.status == 'PENDING').all()

    self._q(Model) is equivalent to:
        self.db.query(Model).filter(Model.merchant_id == merchant_id)
    """

    def __init__(self, db: Session, merchant_id: int = None):
        self.db = db
        self.merchant_id = merchant_id

    def _q(self, model) -> Query:
        """
        Create a merchant-filtered query.

        Adds WHERE merchant_id = :merchant_id for models that have
        a merchant_id column.
        """
        query = self.db.query(model)
        if self.merchant_id and hasattr(model, 'merchant_id'):
            query = query.filter(model.merchant_id == self.merchant_id)
        return query
