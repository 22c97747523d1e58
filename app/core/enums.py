# Single source of truth for enumerated column values.
from typing import Literal

CONTRACT_STATUS = ("Active", "PaidOff", "Default", "Repossessed")
ContractStatus = Literal["Active", "PaidOff", "Default", "Repossessed"]

# how the contract was acquired
ORIGIN_TYPE = ("DIRECT", "ASSUMED")
OriginType = Literal["DIRECT", "ASSUMED"]

# payment structure
SALE_TYPE = ("CFD", "CASH")
SaleType = Literal["CFD", "CASH"]

DEED_STATUS = ("UNKNOWN", "NOT_RECORDED", "RECORDED")
DeedStatus = Literal["UNKNOWN", "NOT_RECORDED", "RECORDED"]

COST_BASIS_SOURCE = ("HUD", "PSA", "ASSIGNMENT", "LEGACY", "OTHER")
CostBasisSource = Literal["HUD", "PSA", "ASSIGNMENT", "LEGACY", "OTHER"]

OPENING_RECEIVABLE_SOURCE = ("ASSIGNMENT", "LEGACY", "OTHER")
OpeningReceivableSource = Literal["ASSIGNMENT", "LEGACY", "OTHER"]

INSTALLMENT_TYPE = ("REGULAR", "BALLOON")
InstallmentType = Literal["REGULAR", "BALLOON"]

INSTALLMENT_STATUS = ("PENDING", "PAID")
InstallmentStatus = Literal["PENDING", "PAID"]

RECEIVED_BY = ("GT_REAL_BANK", "LEGACY_G&T", "PERSONAL", "UNKNOWN")
ReceivedBy = Literal["GT_REAL_BANK", "LEGACY_G&T", "PERSONAL", "UNKNOWN"]

PAYMENT_CHANNEL = ("ZELLE", "ACH", "CASH", "CHECK", "WIRE", "OTHER")
PaymentChannel = Literal["ZELLE", "ACH", "CASH", "CHECK", "WIRE", "OTHER"]

AUDIT_ENTITY_TYPE = ("CONTRACT", "PAYMENT")
