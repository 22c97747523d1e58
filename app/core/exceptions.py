"""Exception hierarchy for contract and installment operations."""


class LandContractError(Exception):
    """Base exception for all land contract errors."""


class ContractNotFoundError(LandContractError):
    """Raised when a referenced contract does not exist."""


class InvalidContractTermsError(LandContractError):
    """Raised when financing terms are malformed (negative count, non-numeric amount)."""


class IneligibleContractError(LandContractError):
    """Raised when a contract lacks the terms needed to build a schedule."""

    def __init__(self, contract_id, reason: str):
        self.contract_id = contract_id
        self.reason = reason
        super().__init__(f"Contract {contract_id} not eligible: {reason}")


class AlreadyGeneratedError(LandContractError):
    """Raised when a contract already has installments on file."""

    def __init__(self, contract_id, existing_count: int):
        self.contract_id = contract_id
        self.existing_count = existing_count
        super().__init__(
            f"Contract {contract_id} already has {existing_count} installments"
        )
