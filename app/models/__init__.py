# Automatically load all models so metadata knows them
from app.models.contract_model import Contract
from app.models.installment_model import Installment
from app.models.payment_model import Payment
from app.models.tax_audit_log_model import TaxAuditLog
